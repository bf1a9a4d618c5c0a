"""Health check resources."""

from __future__ import annotations

from .resources import HealthResource, ReadyResource

__all__ = ["HealthResource", "ReadyResource"]
