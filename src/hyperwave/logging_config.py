"""
Logging Configuration
Sets up the 'hyperwave' logger for the headless driver and keeps the
numeric and I/O libraries it pulls in from flooding the console.
"""
import logging
import sys
from typing import Optional

from hyperwave.config import NOISY_LIBRARIES

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None,
                  library_level: int = logging.WARNING) -> logging.Logger:
    """
    Configures the logger for the 'hyperwave' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        library_level: Level for numba, matplotlib, h5py and pyvista loggers.
            numba in particular logs every compilation pass at DEBUG.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("hyperwave")
    logger.setLevel(level)

    # Calling main() twice in one process must not double every line
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    # 1. Console (stdout, so tick summaries interleave with CLI output)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # 2. File (optional, truncated per run)
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    logger.debug(f"Logging initialized (level={logging.getLevelName(level)}, file={log_file}).")
    return logger
