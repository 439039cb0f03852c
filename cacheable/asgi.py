"""ASGI middleware that gives every request its own cache context."""

import logging
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

from cacheable.registry.context_local import Namespace, get_namespace

logger = logging.getLogger(__name__)

ASGIScope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send = Callable[[MutableMapping[str, Any]], Awaitable[None]]
ASGIApp = Callable[[ASGIScope, Receive, Send], Awaitable[None]]


class CacheContextMiddleware:
    """Wrap each ``http`` and ``websocket`` connection in a fresh cache context.

    Context-local cached methods called while handling the request share
    entries with each other and never with a concurrent request. Other
    connection types (``lifespan``) pass through untouched.

    Args:
        app: The wrapped ASGI application.
        namespace: Namespace to open contexts in. Defaults to the configured one.
    """

    def __init__(self, app: ASGIApp, namespace: Namespace | None = None) -> None:
        self.app = app
        self.namespace = namespace

    async def __call__(self, scope: ASGIScope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        namespace = self.namespace or get_namespace()
        with namespace.context():
            logger.debug("Opened cache context for %s %s", scope["type"], scope.get("path"))
            await self.app(scope, receive, send)
