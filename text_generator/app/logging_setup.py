from __future__ import annotations

import logging

from text_generator.app.settings import settings


def configure_logging(level_name: str | None = None) -> None:
    """Configure root logging using environment settings."""
    name = (level_name or settings.log_level).strip().upper()
    level = getattr(logging, name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logging.getLogger("text_generator").setLevel(level)
