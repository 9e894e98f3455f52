import logging
import sys
from typing import Optional
from pathlib import Path
from ..config import get_settings

FALLBACK_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _file_handler(log_dir: str, log_file: str) -> logging.Handler:
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(str(path / log_file))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get or create a portal logger.

    Every logger writes to stdout. Outside the testing environment it also
    appends to ``LOG_DIR/LOG_FILE``.

    Args:
        name: Logger name (usually __name__ of calling module)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name or "xero_portal")

    # Only configure if no handlers are set
    if not logger.handlers:
        try:
            settings = get_settings()
            level = getattr(logging, settings.LOG_LEVEL.upper())
            formatter = logging.Formatter(settings.LOG_FORMAT)

            handlers = [logging.StreamHandler(sys.stdout)]
            if settings.ENVIRONMENT != "testing":
                handlers.append(_file_handler(settings.LOG_DIR, settings.LOG_FILE))

            for handler in handlers:
                handler.setFormatter(formatter)
                handler.setLevel(level)
                logger.addHandler(handler)
            logger.setLevel(level)

        except (OSError, ValueError, AttributeError) as e:
            # Console only when the log file or level cannot be set up
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(logging.Formatter(FALLBACK_FORMAT))
            logger.addHandler(console_handler)
            logger.setLevel(logging.INFO)
            logger.error(f"Error configuring file logger: {str(e)}")

        logger.propagate = False

    return logger
