# api/pipeline.py
from typing import Iterable, Tuple

from fastapi import APIRouter, FastAPI, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api.endpoints import cart, order, product, user
from core.exceptions import handle_general_exception
from core.metrics import AppMetrics


# Mount order is significant: first matching prefix wins.
ROUTE_GROUPS: Tuple[Tuple[str, APIRouter], ...] = (
    ("/user", user.router),
    ("/product", product.router),
    ("/cart", cart.router),
    ("/order", order.router),
)


def in_namespace(path: str, prefix: str) -> bool:
    """True when ``path`` is ``prefix`` itself or a sub-path of it."""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


class ApiRequestCounterMiddleware:
    """Counts every HTTP request under the API namespace, then passes it on."""

    def __init__(self, app: ASGIApp, metrics: AppMetrics, prefix: str = "/api"):
        self.app = app
        self.metrics = metrics
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and in_namespace(scope["path"], self.prefix):
            self.metrics.requests.inc()
        await self.app(scope, receive, send)


class UnhandledErrorMiddleware:
    """Turns uncaught exceptions into the JSON 500 envelope.

    Sits inside CORSMiddleware so the 500 still carries the CORS headers;
    Starlette's own fallback handler runs outside every user middleware.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = await handle_general_exception(Request(scope, receive), exc)
            await response(scope, receive, send)


def mount_route_groups(app: FastAPI, api_prefix: str,
                       groups: Iterable[Tuple[str, APIRouter]] = ROUTE_GROUPS) -> None:
    for prefix, router in groups:
        app.include_router(router, prefix=f"{api_prefix}{prefix}")
