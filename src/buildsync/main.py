"""Application entry point for the build number registry server."""

from buildsync.app import App
from buildsync.config import Config
from buildsync.logging import setup_logging
from buildsync.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
