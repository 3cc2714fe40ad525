# hello_service/plugins/serialization.py
"""
Content negotiation between handler payloads and wire representations.

Handlers hand a plain Python value to `ContentNegotiator.respond`; the
negotiator picks a media type from the request's Accept header and lets the
matching converter build the response. Status codes chosen by the handler
are never changed here.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse, Response

logger = logging.getLogger(__name__)

JSON = "application/json"
TEXT = "text/plain"


class JSONConverter:
    media_type = JSON

    def accepts(self, payload: Any) -> bool:
        return True

    def render(self, payload: Any, status_code: int = 200) -> Response:
        return JSONResponse(jsonable_encoder(payload), status_code=status_code)

    def decode(self, body: bytes) -> Any:
        return json.loads(body)


class TextConverter:
    media_type = TEXT

    def accepts(self, payload: Any) -> bool:
        return isinstance(payload, str)

    def render(self, payload: Any, status_code: int = 200) -> Response:
        return PlainTextResponse(payload, status_code=status_code)

    def decode(self, body: bytes) -> str:
        return body.decode("utf-8")


def _quality(value: str) -> float:
    try:
        quality = float(value)
    except ValueError:
        return 0.0
    # nan, inf and anything outside [0, 1] count as refused
    if not math.isfinite(quality) or not 0.0 <= quality <= 1.0:
        return 0.0
    return quality


def parse_accept(header: Optional[str]) -> List[Tuple[str, float]]:
    """
    Parse an Accept header into (media_range, quality) pairs, best first.

    Ties on quality keep more specific ranges ahead of wildcards, then the
    order the client listed them in.
    """
    if not header:
        return []

    ranked = []
    for index, part in enumerate(header.split(",")):
        fields = [f.strip() for f in part.split(";")]
        media_range = fields[0].lower()
        if not media_range:
            continue
        if "/" not in media_range:
            media_range = media_range + "/*" if media_range != "*" else "*/*"

        quality = 1.0
        for param in fields[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                quality = _quality(value.strip())

        if quality <= 0:
            continue
        specificity = 2 - media_range.count("*")
        ranked.append((-quality, -specificity, index, media_range, quality))

    ranked.sort()
    return [(media_range, quality) for _, _, _, media_range, quality in ranked]


def _matches(media_range: str, media_type: str) -> bool:
    if media_range == "*/*":
        return True
    range_type, _, range_sub = media_range.partition("/")
    main, _, sub = media_type.partition("/")
    return range_type == main and range_sub in ("*", sub)


class ContentNegotiator:
    def __init__(self):
        self._converters: Dict[str, Any] = {}

    def register(self, converter) -> None:
        self._converters[converter.media_type] = converter

    @property
    def media_types(self) -> List[str]:
        return list(self._converters)

    def default_media_type(self, payload: Any) -> str:
        if isinstance(payload, str) and TEXT in self._converters:
            return TEXT
        return JSON

    def select(self, accept: Optional[str], payload: Any) -> str:
        """
        Pick the media type for `payload` given the client's Accept header.

        A missing header or a header naming nothing we can produce falls back
        to the payload's default representation.
        """
        for media_range, _ in parse_accept(accept):
            if media_range == "*/*":
                break
            for media_type, converter in self._converters.items():
                if _matches(media_range, media_type) and converter.accepts(payload):
                    return media_type
        return self.default_media_type(payload)

    def render(self, media_type: str, payload: Any, status_code: int = 200) -> Response:
        return self._converters[media_type].render(payload, status_code)

    def decode(self, content_type: Optional[str], body: bytes) -> Any:
        media_type = (content_type or JSON).split(";")[0].strip().lower()
        converter = self._converters.get(media_type)
        if converter is None:
            raise HTTPException(
                status_code=415,
                detail=f"Unsupported media type: {media_type}",
            )
        try:
            return converter.decode(body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise HTTPException(status_code=400, detail="Malformed request body") from exc

    async def receive(self, request: Request) -> Any:
        return self.decode(request.headers.get("content-type"), await request.body())

    def respond(self, request: Request, payload: Any, status_code: int = 200) -> Response:
        media_type = self.select(request.headers.get("accept"), payload)
        return self.render(media_type, payload, status_code)


def get_negotiator(request: Request) -> ContentNegotiator:
    return request.app.state.negotiator


def configure_serialization(app: FastAPI) -> None:
    negotiator = ContentNegotiator()
    negotiator.register(JSONConverter())
    negotiator.register(TextConverter())
    app.state.negotiator = negotiator
    logger.debug("Content negotiation enabled for %s", negotiator.media_types)
