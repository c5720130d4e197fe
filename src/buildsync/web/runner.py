"""Uvicorn runner for the registry server."""

import uvicorn

from buildsync.app import App
from buildsync.config import Config
from buildsync.logging import log_level
from buildsync.web.server import create_fastapi_app


def run_server(app: App, config: Config) -> None:
    """Serve the registry; uvicorn's own logs go through the handler set up by ``setup_logging``."""
    fastapi_app = create_fastapi_app(app, config)

    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=None,
        log_level=log_level(config.debug),
        access_log=True,
    )
