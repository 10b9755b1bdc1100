"""
Logging utilities for the interview engine.

Everything goes to one log file; the terminal is reserved for the
interview itself, so the console handler only lets critical messages through.
"""
import os
import logging

# HTTP and auth libraries log every request at DEBUG
NOISY_LOGGERS = ("urllib3", "google.auth", "fitz")


def setup_logging(log_file_path: str, level: str = "DEBUG") -> str:
    """
    Send all engine logs to a file with minimal console output.

    Args:
        log_file_path: Full path to the log file
        level: Level name for the file handler ("DEBUG", "INFO", ...)

    Returns:
        Path to the log file
    """
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Appended so a resumed session keeps its earlier history
    file_handler = logging.FileHandler(log_file_path, mode='a', encoding='utf-8')
    file_handler.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s'))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file_path
