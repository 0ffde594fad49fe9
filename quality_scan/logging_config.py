from __future__ import annotations

import logging

from quality_scan.config import LoggingSettings

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(settings: LoggingSettings) -> None:
    """Configure Python and OpenCV logging once at startup."""

    logging.basicConfig(
        level=getattr(logging, settings.level.upper(), logging.INFO),
        format=DEFAULT_LOG_FORMAT,
        force=True,
    )
    set_opencv_log_level(settings.opencv_level)


def set_opencv_log_level(level: str) -> None:
    """Apply ``level`` (ERROR, WARNING, INFO, ...) to OpenCV's native logger."""

    import cv2

    utils_logging = getattr(getattr(cv2, "utils", None), "logging", None)
    if utils_logging is None:
        logger.debug("OpenCV build exposes no log level control; leaving defaults.")
        return

    constant = getattr(utils_logging, f"LOG_LEVEL_{level.upper()}", None)
    if constant is None:
        logger.warning("Unknown OpenCV log level %r; leaving defaults.", level)
        return
    utils_logging.setLogLevel(constant)
