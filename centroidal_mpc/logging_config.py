"""Centralized logging configuration for centroidal_mpc.

All modules should import logger from here:
    from .logging_config import logger
    # or
    from centroidal_mpc.logging_config import logger
"""

import logging
import os

# Level can be raised to INFO/DEBUG from the environment while tuning
LOG_LEVEL = os.getenv("CENTROIDAL_MPC_LOG_LEVEL", "WARNING").upper()

logger = logging.getLogger("centroidal_mpc")
logger.setLevel(getattr(logging, LOG_LEVEL, logging.WARNING))

# Prevent duplicate handlers if module is imported multiple times
if not logger.handlers:
    stream_handler = logging.StreamHandler()
    stream_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    )
    stream_handler.setFormatter(stream_formatter)
    logger.addHandler(stream_handler)
