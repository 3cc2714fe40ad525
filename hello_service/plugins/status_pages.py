# hello_service/plugins/status_pages.py

import logging
from http import HTTPStatus
from typing import Any, Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.utils import is_body_allowed_for_status_code
from starlette.exceptions import HTTPException as StarletteHTTPException

from hello_service.models.errors import ErrorBody

logger = logging.getLogger(__name__)


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def error_response(
    request: Request,
    status_code: int,
    headers=None,
    detail: Any = None,
) -> Response:
    if not is_body_allowed_for_status_code(status_code):
        return Response(status_code=status_code, headers=headers)

    reason = _reason(status_code)
    body = ErrorBody(
        status=status_code,
        error=reason,
        path=request.url.path,
        detail=None if detail == reason else detail,
    )
    return JSONResponse(
        body.model_dump(exclude_none=True),
        status_code=status_code,
        headers=headers,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    return error_response(
        request,
        exc.status_code,
        getattr(exc, "headers", None),
        detail=exc.detail,
    )


class StatusPages:
    """
    Maps exception types raised by handlers to HTTP status codes.

    Empty by default: anything unmapped falls through to the server's
    generic 500 response.
    """

    def __init__(self, app: FastAPI):
        self._app = app
        self._mappings: Dict[Type[Exception], int] = {}

    @property
    def mappings(self) -> Dict[Type[Exception], int]:
        return dict(self._mappings)

    def exception(self, exc_type: Type[Exception], status_code: int) -> None:
        if self._app.middleware_stack is not None:
            raise RuntimeError("Cannot map exceptions after the application has started")

        async def handler(request: Request, exc: Exception) -> Response:
            logger.warning(
                "%s on %s %s mapped to %d",
                type(exc).__name__,
                request.method,
                request.url.path,
                status_code,
            )
            return error_response(request, status_code)

        self._mappings[exc_type] = status_code
        self._app.add_exception_handler(exc_type, handler)


def configure_status_pages(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.state.status_pages = StatusPages(app)
