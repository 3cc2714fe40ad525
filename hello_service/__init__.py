# hello_service/__init__.py
"""
Package entrypoint for the hello service.

Run with:
    hello-service --port 8080
or through uvicorn directly:
    uvicorn --factory hello_service:create_app
"""

__version__ = "0.1.0"

from .main import configure, create_app  # noqa: E402

__all__ = ["__version__", "configure", "create_app"]
