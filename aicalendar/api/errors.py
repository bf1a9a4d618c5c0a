"""API exceptions and the Falcon handlers that render them.

Usage
-----
Register the handler on the Falcon app::

    from aicalendar.api.errors import UnauthorizedError, handle_unauthorized

    app.add_error_handler(UnauthorizedError, handle_unauthorized)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["UnauthorizedError", "handle_unauthorized"]


class UnauthorizedError(Exception):
    """Raised when a trigger request lacks the configured bearer secret."""

    def __init__(self) -> None:
        """Use a fixed message so the secret never leaks into logs."""
        super().__init__("missing or invalid bearer token")


async def handle_unauthorized(
    _req: Request,
    resp: Response,
    _ex: UnauthorizedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UnauthorizedError`` to an HTTP 401 JSON response."""
    resp.status = falcon.HTTP_401
    resp.media = {"error": "Unauthorized"}
