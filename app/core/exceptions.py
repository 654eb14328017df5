"""
Errores tipados del dominio y handlers globales para respuestas consistentes.

Los servicios levantan `AppError` (o subclases) con su status HTTP; los handlers
los traducen a `{"message", "statusCode"}` sin perder la clasificación original.
"""
import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette import status


class AppError(Exception):
    """Error de aplicación con mensaje legible y status HTTP."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class StoreFailureError(AppError):
    """Falla del almacén (driver Mongo); conserva sólo el mensaje original."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def _body(message: str, status_code: int, request: Request) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message, "statusCode": status_code}
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return body


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("notes.errors")

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("AppError %s request_id=%s: %s", type(exc).__name__, _req_id(request), exc.message)
        return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.status_code, request))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(exc.detail or "HTTP error", exc.status_code, request),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        body = _body("Validation error", 422, request)
        body["errors"] = jsonable_errors(exc)
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return JSONResponse(status_code=500, content=_body("Internal server error", 500, request))


def jsonable_errors(exc: RequestValidationError) -> list[Dict[str, Any]]:
    # `ctx` puede traer excepciones no serializables (ValueError de validators)
    out: list[Dict[str, Any]] = []
    for e in exc.errors():
        e = dict(e)
        if "ctx" in e:
            e["ctx"] = {k: str(v) for k, v in (e["ctx"] or {}).items()}
        out.append(e)
    return out
