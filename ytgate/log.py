import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the ytgate logger tree"""
    logger = logging.getLogger("ytgate")
    logger.setLevel(level)
    if not any(getattr(h, "_ytgate", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._ytgate = True
        logger.addHandler(handler)
