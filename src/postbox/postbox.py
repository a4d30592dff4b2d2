"""
postbox Core Module.

This module provides the main entry point for the postbox blog service.

The postbox entry point embeds Gunicorn to run the blog Flask application,
which:
1. Accepts new posts with images (POST /add)
2. Lists stored posts (GET /posts)
3. Issues short-lived image tokens (POST /token)
4. Serves images for valid tokens (GET /bytoken)

Functions:
    configure_logging(debug) -> None:
        Root logger setup: rotating postbox.log plus stdout.
    main() -> None:
        Entry point for the console script.

Example:
    Run via console script:
        $ postbox
        Starting Gunicorn for postbox
        Gunicorn server is ready to accept connections
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: bool = False, log_file: str = "postbox.log") -> None:
    """Configure the root logger with a 10MB rotating file and stdout."""
    log_level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear any existing handlers to avoid duplicates (e.g., from gunicorn)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    log_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=3
    )
    log_handler.setLevel(log_level)
    log_handler.setFormatter(formatter)
    root_logger.addHandler(log_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def main(debug: bool = False) -> None:
    """Main entry point for the postbox console command.

    Loads config.yml, builds Settings once, creates the Flask app, and runs it
    under Gunicorn using src/blog/gunicorn_config.py.

    Args:
        debug: Enable debug logging and disable the worker timeout.
               Can be set via --debug flag or POSTBOX_DEBUG environment variable.
    """
    from gunicorn.app.base import BaseApplication
    from blog.blog import create_app
    from config import load_config
    from config.settings import Settings

    if not debug:
        debug = os.environ.get("POSTBOX_DEBUG", "").lower() in ("true", "1", "yes")
        if len(sys.argv) > 1 and "--debug" in sys.argv:
            debug = True

    configure_logging(debug)

    if debug:
        logger.info("Debug mode enabled: verbose logging and worker timeout disabled")

    logger.info("Loading configuration from config.yml")
    config = load_config()
    settings = Settings.from_config(config)

    app = create_app(config=config, settings=settings)

    config_path = os.path.join(os.path.dirname(__file__), "..", "blog", "gunicorn_config.py")

    class StandaloneApplication(BaseApplication):
        """Custom Gunicorn application for embedding within postbox entry point."""

        def __init__(self, app, options=None):
            self.options = options or {}
            self.application = app
            super().__init__()

        def load_config(self):
            config_file = self.options.get("config")
            if config_file:
                self.cfg.set("config", config_file)
                with open(config_file, "r") as f:
                    config_code = f.read()
                config_namespace = {}
                exec(config_code, config_namespace)
                for key, value in config_namespace.items():
                    if key in self.cfg.settings and value is not None:
                        self.cfg.set(key.lower(), value)

                if self.options.get("debug"):
                    self.cfg.set("timeout", 0)
                    self.cfg.set("loglevel", "debug")

        def load(self):
            return self.application

    options = {
        "config": config_path,
        "debug": debug,
    }
    StandaloneApplication(app, options).run()


# Allow running as a script for development/testing
if __name__ == "__main__":
    main()
