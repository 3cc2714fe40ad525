# hello_service/plugins/monitoring.py
"""
Call logging: every request/response pair is reported to the observers
registered on the application's `CallMonitor`.
"""

import logging
import time
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable, Tuple

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)
call_logger = logging.getLogger("hello_service.calls")


@dataclass(frozen=True)
class CallRecord:
    method: str
    path: str
    status_code: int
    duration_ms: float
    failed: bool = False


CallObserver = Callable[[CallRecord], None]


def _status_line(status_code: int) -> str:
    try:
        return f"{status_code} {HTTPStatus(status_code).phrase}"
    except ValueError:
        return str(status_code)


def log_call(level: int = logging.INFO) -> CallObserver:
    """Observer that writes one log line per call, e.g. `200 OK: GET - / in 3ms`."""

    def observer(record: CallRecord) -> None:
        call_logger.log(
            level,
            "%s: %s - %s in %dms",
            _status_line(record.status_code),
            record.method,
            record.path,
            record.duration_ms,
        )

    return observer


class CallMonitor:
    def __init__(self, observers: Tuple[CallObserver, ...] = ()):
        # Replaced wholesale on subscribe so readers never see a partial update.
        self._observers = tuple(observers)

    @property
    def observers(self) -> Tuple[CallObserver, ...]:
        return self._observers

    def subscribe(self, observer: CallObserver) -> None:
        self._observers = self._observers + (observer,)

    def notify(self, record: CallRecord) -> None:
        for observer in self._observers:
            try:
                observer(record)
            except Exception:
                logger.exception("Call observer %r failed for %s %s", observer, record.method, record.path)


def configure_monitoring(app: FastAPI) -> None:
    config = app.state.settings.monitoring
    monitor = CallMonitor((log_call(logging.getLevelName(config.level)),))
    app.state.call_monitor = monitor

    if not config.enabled:
        logger.info("Call monitoring disabled")
        return

    prefix = config.path_prefix

    @app.middleware("http")
    async def call_logging(request: Request, call_next):
        path = request.url.path
        if not path.startswith(prefix):
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            monitor.notify(
                CallRecord(
                    method=request.method,
                    path=path,
                    status_code=500,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    failed=True,
                )
            )
            raise

        monitor.notify(
            CallRecord(
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=(time.perf_counter() - started) * 1000,
            )
        )
        return response
