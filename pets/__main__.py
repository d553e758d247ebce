"""Run the pets API with Uvicorn using environment settings."""

from __future__ import annotations

import logging
import sys

import uvicorn

from .config import get_settings
from .errors import PetServiceError
from .main import create_app

logger = logging.getLogger("pets")


def main() -> int:
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level)
        app = create_app(settings)
    except PetServiceError as exc:
        logger.error("Failed to create server: %s", exc)
        return 1
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
