"""
Logging Configuration
Sets up the loggers used by the ray caster modules.
"""
import logging
import sys

LOGGER_NAMES = ("tracer", "canvas", "cli", "scenefile", "__main__")


def setup_logging(level=logging.INFO, log_file=None):
    """
    Configures console (and optionally file) output for the ray caster loggers.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    # Format: Time - Module - Level - Message
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(formatter)

    handlers = [console_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Avoid duplicate output when called more than once
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger("cli").debug("Logging initialized.")
