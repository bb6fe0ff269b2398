import logging

from translation_hub.config import Settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format=settings.log_format)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
