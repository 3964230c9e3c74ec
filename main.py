"""Main entry point for running the Crudkit FastAPI application."""

import os

import uvicorn
from loguru import logger

from crudkit.core.config import get_settings
from crudkit.core.logging import setup_logging


def main() -> None:
    """Run the application factory under uvicorn."""
    settings = get_settings()

    setup_logging(settings)

    port = int(os.environ.get("PORT", settings.api_port))

    # Route uvicorn's stdlib loggers through loguru
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "default": {
                "class": "crudkit.core.logging.InterceptHandler",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }

    mode = "development mode with auto-reload" if settings.debug else "production mode"
    logger.info("Starting Uvicorn on http://{}:{} ({})", settings.api_host, port, mode)
    uvicorn.run(
        "crudkit.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=port,
        reload=settings.debug,
        log_config=log_config,
    )


if __name__ == "__main__":
    main()
