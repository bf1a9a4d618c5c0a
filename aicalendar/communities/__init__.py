"""Community registry: typed entries and the seed routine."""

from __future__ import annotations

from .models import DEFAULT_COMMUNITIES, Community
from .seed import seed_communities

__all__ = ["DEFAULT_COMMUNITIES", "Community", "seed_communities"]
