import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class EngineError(Exception):
    code = "UNKNOWN"
    status_code = 500
    default_message = "Unexpected server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotMutualTop3(EngineError):
    code = "NOT_MUTUAL_TOP3"
    status_code = 409
    default_message = "Pair is not currently mutual top-3 eligible for chat"


class ThreadNotAccessible(EngineError):
    code = "THREAD_NOT_ACCESSIBLE"
    status_code = 403
    default_message = "Thread not accessible"


class NotInGroup(EngineError):
    code = "NOT_IN_GROUP"
    status_code = 404
    default_message = "No group assigned"


class InvalidRequest(EngineError):
    code = "INVALID_REQUEST"
    status_code = 400
    default_message = "Invalid request"


def _error_response(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code, "detail": detail})


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(EngineError)
    async def _engine_error(request: Request, exc: EngineError) -> JSONResponse:
        if exc.code == "UNKNOWN":
            logger.error("[ENGINE] unclassified failure path=%s detail=%s", request.url.path, exc.message)
            return _error_response(500, "UNKNOWN", EngineError.default_message)
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = f"{field}: {first.get('msg')}" if field else str(first.get("msg") or "Invalid request")
        return _error_response(400, "INVALID_REQUEST", detail)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("[ENGINE] unexpected failure path=%s", request.url.path)
        return _error_response(500, "UNKNOWN", EngineError.default_message)
