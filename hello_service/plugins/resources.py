# hello_service/plugins/resources.py

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from fastapi import FastAPI

from hello_service.config import Settings, load_config

logger = logging.getLogger(__name__)


class ResourceLoader:
    """Loads the settings every later configurator reads from `app.state.settings`."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ):
        self.config_path = config_path
        self.overrides = dict(overrides or {})

    def load(self) -> Settings:
        return load_config(self.config_path, self.overrides)


def configure_resources(app: FastAPI) -> None:
    loader = getattr(app.state, "resource_loader", None) or ResourceLoader()
    settings = loader.load()
    app.state.settings = settings
    logger.info(
        "Loaded configuration from %s",
        settings.source or "packaged defaults",
    )
