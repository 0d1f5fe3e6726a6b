import logging
import os

LOGGER_NAME = "fileguard"
DEFAULT_LOG_FILENAME = "fileguard.log"


def setup_logger(name=LOGGER_NAME, level=logging.INFO, log_dir=None,
                 log_filename=DEFAULT_LOG_FILENAME, console=True):
    """
    Set up and return a logger with console and (optionally) file handlers.

    Args:
        name (str): The logger name.
        level (int): Logging level.
        log_dir (str): Directory for the log file; no file handler when None.
        log_filename (str): Log file name.
        console (bool): Whether to add a console handler (stderr).

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Clear out any existing handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def handler_streams(logger):
    """File objects behind the logger's handlers, for daemon fd preservation."""
    return [
        handler.stream
        for handler in logger.handlers
        if hasattr(handler, "stream") and hasattr(handler.stream, "fileno")
    ]
