"""
Centralized logging configuration for the KPI dashboard core.

Usage:
    from act_kpi.logging_config import setup_logging

    logger = setup_logging(__name__)
    logger.info("Fetched 30 rows for campaign 1001")
    logger.warning("Refresh already running, request ignored")
    logger.error("Metrics fetch failed")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from .settings import get_settings


def setup_logging(
    module_name: str,
    log_level: str | None = None,
    log_dir: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """
    Set up logging for a module with both file and console output.

    Args:
        module_name: Name of the module (use __name__)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
            Defaults to Settings.log_level ($LOG_LEVEL, INFO).
        log_dir: Directory for log files. Defaults to Settings.log_dir
            ($LOG_DIR, logs/).
        console_output: Whether to output to console (default: True)

    Returns:
        Configured logger instance

    Log Levels:
        DEBUG: Per-day series details, duplicate day rows
        INFO: Fetches, refresh start/finish, campaign selection
        WARNING: Rejected refreshes, empty windows
        ERROR: Failed metrics fetches

    Log Files:
        Format: logs/{module}_{date}.log
        Example: logs/state_2026-02-14.log
    """
    settings = get_settings()
    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(module_name)
    logger.setLevel(level)

    # Prevent duplicate handlers if setup_logging called multiple times
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log_path = Path(log_dir or settings.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    today = datetime.now().strftime("%Y-%m-%d")
    simple_module = module_name.split(".")[-1]
    log_file = log_path / f"{simple_module}_{today}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
