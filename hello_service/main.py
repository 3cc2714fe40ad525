# hello_service/main.py
"""
Process entry point and application composition.

`configure` runs the plugin configurators exactly once, in a fixed order,
against a single FastAPI instance. Every step after the first reads the
settings it loads, and the status pages wrap the routes registered before
them.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import uvicorn
from fastapi import FastAPI

from hello_service import __version__
from hello_service.config import Settings, configure_logging
from hello_service.errors import AlreadyConfiguredError, BootstrapError
from hello_service.plugins.monitoring import configure_monitoring
from hello_service.plugins.resources import ResourceLoader, configure_resources
from hello_service.plugins.routing import configure_routing
from hello_service.plugins.security import configure_security
from hello_service.plugins.serialization import configure_serialization
from hello_service.plugins.status_pages import configure_status_pages

logger = logging.getLogger(__name__)

Configurator = Callable[[FastAPI], None]

CONFIGURATORS: Sequence[Configurator] = (
    configure_resources,
    configure_security,
    configure_serialization,
    configure_monitoring,
    configure_routing,
    configure_status_pages,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application started with plugins: %s", ", ".join(app.state.plugins))
    yield
    logger.info("Application stopped")


def configure(app: FastAPI, steps: Optional[Sequence[Configurator]] = None) -> FastAPI:
    """
    Compose `app` by running each configurator once, in order.

    The first failure stops composition and is raised as `BootstrapError`.
    A context may only be composed once, and never after it has begun
    serving requests.
    """
    steps = CONFIGURATORS if steps is None else steps

    if getattr(app.state, "configured", False):
        raise AlreadyConfiguredError("application is already configured")
    if app.middleware_stack is not None:
        raise AlreadyConfiguredError("application is already serving requests")
    app.state.configured = True

    installed = []
    for step in steps:
        name = getattr(step, "__name__", repr(step))
        try:
            step(app)
        except Exception as exc:
            logger.error("Configurator %s failed: %s", name, exc)
            raise BootstrapError(f"{name} failed: {exc}", step=name) from exc
        installed.append(name)
        logger.debug("Configurator %s installed", name)

    app.state.plugins = tuple(installed)
    return app


def create_app(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> FastAPI:
    """
    Build a new, fully configured application that is not yet serving.

    Usable directly as an ASGI factory:
        uvicorn --factory hello_service.main:create_app
    """
    app = FastAPI(
        title="Hello Service",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.resource_loader = ResourceLoader(config_path, overrides)
    return configure(app)


def create_server(app: FastAPI, settings: Optional[Settings] = None) -> uvicorn.Server:
    settings = settings or app.state.settings
    config = uvicorn.Config(
        app,
        host=settings.deployment.host,
        port=settings.deployment.port,
        log_level=logging.getLevelName(settings.logging.level),
        log_config=None,
        lifespan="on",
    )
    return uvicorn.Server(config)


def shutdown(server: uvicorn.Server) -> None:
    server.should_exit = True


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hello-service",
        description="Serve the hello service over HTTP.",
    )
    parser.add_argument("--host", help="Interface to bind (overrides deployment.host)")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides deployment.port)")
    parser.add_argument("--config", type=Path, help="Path to a TOML configuration file")
    parser.add_argument("--log-level", help="Logging level (overrides logging.level)")
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.host:
        overrides.setdefault("deployment", {})["host"] = args.host
    if args.port is not None:
        overrides.setdefault("deployment", {})["port"] = args.port
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    return overrides


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        app = create_app(config_path=args.config, overrides=_overrides(args))
    except BootstrapError as exc:
        logger.critical("Startup aborted: %s", exc)
        raise SystemExit(1) from exc

    settings: Settings = app.state.settings
    configure_logging(settings.logging)

    server = create_server(app, settings)
    logger.info(
        "Listening on http://%s:%d",
        settings.deployment.host,
        settings.deployment.port,
    )
    try:
        server.run()
    finally:
        shutdown(server)
        logger.info("Server stopped")


if __name__ == "__main__":
    main()
