import sys
from pathlib import Path
from loguru import logger
from .config import settings

def setup_logging():
    """Console sink at LOG_LEVEL plus a rotating file sink."""
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL)

    Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level=settings.LOG_LEVEL,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}",
    )
    return logger
