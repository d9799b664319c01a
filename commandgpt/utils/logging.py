# commandgpt/utils/logging.py
"""
Logging configuration for CommandGPT.
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from commandgpt.constants import LOG_DIR, LOG_FORMAT, LOG_ROTATION, LOG_RETENTION

# Records emitted before setup_logging() runs still need a name to format
logger.configure(extra={"name": "commandgpt"})


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> None:
    """
    Configure the application logging.
    
    Args:
        debug: Whether to enable debug logging on the console.
        log_dir: Directory for log files. Defaults to LOG_DIR.
    """
    log_dir = log_dir or LOG_DIR

    # Remove default handlers
    logger.remove()
    
    # Console output stays quiet unless debugging; the CLI prints results itself
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level="DEBUG" if debug else "WARNING",
        diagnose=debug,
    )

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Could not create log directory {log_dir}: {e}")
        return
    
    log_file = log_dir / "commandgpt.log"
    logger.add(
        log_file,
        format=LOG_FORMAT,
        level="DEBUG" if debug else "INFO",
        rotation=LOG_ROTATION,
        retention=LOG_RETENTION,
        compression="zip",
    )
    
    # Structured JSON log
    json_log_file = log_dir / "commandgpt_structured.log"
    logger.add(
        json_log_file,
        serialize=True,
        level="INFO",
        rotation=LOG_ROTATION,
        retention=LOG_RETENTION,
        compression="zip",
    )
    
    logger.debug(f"Logging initialized. Log files: {log_file}, {json_log_file}")


def get_logger(name: str = "commandgpt"):
    """
    Get a logger bound to the given name.
    
    Args:
        name: The name for the logger, usually the module's __name__.
        
    Returns:
        A loguru logger carrying ``name`` in its extra fields.
    """
    return logger.bind(name=name)
