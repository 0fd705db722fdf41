"""
Logging utilities for the S3 filesystem.

This module provides utilities for setting up logging with rotation.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: int = logging.INFO,
    log_file_name: str = "s3filesystem.log",
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 10
) -> None:
    """
    Set up logging with rotation.

    Args:
        log_dir: The directory to store log files in; None logs to the console only
        log_level: The logging level (default: logging.INFO)
        log_file_name: The name of the log file (default: "s3filesystem.log")
        max_bytes: The maximum size of each log file in bytes (default: 10 MB)
        backup_count: The number of backup files to keep (default: 10)
    """
    console_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s"
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    handlers = [console_handler]

    log_file = None
    if log_dir is not None:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, log_file_name)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
        ))
        handlers.append(file_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    for handler in handlers:
        root_logger.addHandler(handler)

    # botocore logs every request at DEBUG
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(max(log_level, logging.WARNING))

    logging.info(f"Logging configured with level {logging.getLevelName(log_level)}")
    if log_file:
        logging.info(f"Log file: {log_file} (max {max_bytes} bytes, {backup_count} backups)")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: The name of the logger

    Returns:
        A logger instance
    """
    return logging.getLogger(name)
