"""Rich, structured console output for nnetrain.

Training prints two kinds of lines that people actually read: a progress
line every time an output finishes a phase of minibatches, and a summary
line per output at the end. This module keeps them consistent and readable.

Usage:
    from nnetrain.console import logger

    logger.info("Reading examples...")
    logger.objective_phase("output", 0, 99, -1.234, 12800.0)
    logger.objective_total("output", -1.1, 128000.0)
"""
from nnetrain.console.logger import Logger, get_logger

# Module-level singleton for convenient import
logger = get_logger()

__all__ = ["Logger", "get_logger", "logger"]
