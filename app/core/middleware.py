"""
Middlewares de la API de notas.

- `RequestIdMiddleware`: propaga/genera `X-Request-Id` y lo deja en `request.state`.
- `AccessLogMiddleware`: una línea por petición en `notes.access` con latencia.
- CORS según `settings.cors_origins` / `settings.cors_allow_any`.
"""
import logging
import time
import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

REQUEST_ID_HEADER = "X-Request-Id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI) -> None:
        super().__init__(app)
        self.log = logging.getLogger("notes.access")

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        status = 500  # si call_next levanta, la respuesta la arma el handler genérico
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            self.log.info(
                "%s %s -> %s (%sms) rid=%s",
                request.method,
                request.url.path,
                status,
                int((time.perf_counter() - start) * 1000),
                getattr(request.state, "request_id", None),
            )


def _cors_options() -> dict:
    if settings.cors_allow_any:
        # Orígenes dinámicos: sin credenciales
        return dict(allow_origin_regex=".*", allow_credentials=False, allow_methods=["*"], allow_headers=["*"])
    return dict(
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )


def add_middlewares(app: FastAPI) -> None:
    app.add_middleware(CORSMiddleware, **_cors_options())
    # El último agregado queda más afuera: el access log ya ve el request_id
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIdMiddleware)
