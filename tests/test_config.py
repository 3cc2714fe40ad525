"""
Configuration resolution: packaged defaults, files, environment, overrides.
"""

from pathlib import Path

import pytest

from hello_service.config import load_config
from hello_service.errors import ConfigError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "application.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_packaged_defaults():
    settings = load_config(environ={})

    assert settings.deployment.host == "0.0.0.0"
    assert settings.deployment.port == 8080
    assert settings.jwt.audience == "jwt-audience"
    assert settings.jwt.realm == "hello-service"
    assert settings.monitoring.enabled is True
    assert settings.logging.level == "INFO"
    assert settings.source is None


def test_file_overrides_packaged_defaults(tmp_path):
    path = _write(tmp_path, '[deployment]\nport = 9000\n\n[jwt]\nrealm = "from-file"\n')

    settings = load_config(path, environ={})

    assert settings.deployment.port == 9000
    assert settings.deployment.host == "0.0.0.0"
    assert settings.jwt.realm == "from-file"
    assert settings.jwt.audience == "jwt-audience"
    assert settings.source == path


def test_config_path_from_environment(tmp_path):
    path = _write(tmp_path, "[deployment]\nport = 9001\n")

    settings = load_config(environ={"HELLO_SERVICE_CONFIG": str(path)})

    assert settings.deployment.port == 9001


def test_environment_beats_file(tmp_path):
    path = _write(tmp_path, "[deployment]\nport = 9000\n")

    settings = load_config(
        path,
        environ={"HELLO_SERVICE_PORT": "9100", "HELLO_SERVICE_JWT_SECRET": "from-env"},
    )

    assert settings.deployment.port == 9100
    assert settings.jwt.secret == "from-env"


def test_overrides_beat_environment():
    settings = load_config(
        overrides={"deployment": {"port": 9200}},
        environ={"HELLO_SERVICE_PORT": "9100"},
    )

    assert settings.deployment.port == 9200


def test_log_levels_are_normalised():
    settings = load_config(overrides={"logging": {"level": "debug"}}, environ={})

    assert settings.logging.level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"deployment": {"port": -1}},
        {"deployment": {"unknown": True}},
        {"logging": {"level": "chatty"}},
        {"jwt": {"algorithm": "RS256"}},
        {"jwt": {"secret": ""}},
    ],
)
def test_invalid_values_raise_config_error(overrides):
    with pytest.raises(ConfigError):
        load_config(overrides=overrides, environ={})


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.toml", environ={})


def test_invalid_toml_raises_config_error(tmp_path):
    path = _write(tmp_path, "[deployment\nport = ")

    with pytest.raises(ConfigError, match="invalid TOML"):
        load_config(path, environ={})
