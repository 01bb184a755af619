import sys
from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Swap loguru's default sink for a single stderr sink at `level`."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )
