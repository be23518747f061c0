import logging
import os

LOG_DIR = os.environ.get("LOG_DIR", "logs")


def log_path(filename: str) -> str:
    """Absolute path of a file inside LOG_DIR, creating the directory if needed."""
    os.makedirs(LOG_DIR, exist_ok=True)
    return os.path.abspath(os.path.join(LOG_DIR, filename))


def attach_file_handler(logger: logging.Logger, path: str, level: int = logging.INFO) -> logging.Logger:
    """Send a logger's records to ``path`` only.

    Safe to call repeatedly: a second handler for the same file is never added.
    """
    path = os.path.abspath(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    if not any(isinstance(h, logging.FileHandler) and h.baseFilename == path for h in logger.handlers):
        handler = logging.FileHandler(path)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    # Keep tool output off the console
    logger.propagate = False
    return logger
