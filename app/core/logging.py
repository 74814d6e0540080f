import logging
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler once. Safe to call on every startup."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
