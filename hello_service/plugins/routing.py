# hello_service/plugins/routing.py

from fastapi import FastAPI

from hello_service.api.root import router as root_router


def configure_routing(app: FastAPI) -> None:
    app.include_router(root_router)
