# hello_service/api/root.py

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response

from hello_service.plugins.serialization import ContentNegotiator, get_negotiator

GREETING = "Hello World!"

router = APIRouter(tags=["root"])


@router.get("/", response_class=PlainTextResponse)
def root(
    request: Request,
    negotiator: ContentNegotiator = Depends(get_negotiator),
) -> Response:
    """
    Return the greeting, as plain text unless the client asks for JSON.
    """
    return negotiator.respond(request, GREETING)
