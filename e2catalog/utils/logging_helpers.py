"""
Structured logging helpers for consistent log formatting.

Provides utilities for structured, clean logging of startup and preload progress.
"""
import logging
from datetime import datetime, timezone


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_preload_start(logger: logging.Logger) -> None:
    """Log picon preload start."""
    logger.info(f"Picon preload started at {datetime.now(timezone.utc).isoformat()}")


def log_batch_progress(
    logger: logging.Logger,
    bouquet_name: str,
    done: int,
    total: int,
    loaded: int,
    failed: int
) -> None:
    """
    Log progress after a picon batch settles.

    Args:
        logger: Logger instance
        bouquet_name: Display name of the bouquet being preloaded
        done: Channels processed so far in this bouquet
        total: Channels in this bouquet
        loaded: Picons loaded in this batch
        failed: Picons that failed in this batch
    """
    logger.info(f"  {bouquet_name}: {done}/{total} ({loaded} loaded, {failed} failed)")


def log_preload_summary(
    logger: logging.Logger,
    loaded: int,
    total_channels: int,
    failed: int
) -> None:
    """
    Log preload summary.

    Args:
        logger: Logger instance
        loaded: Picons successfully loaded
        total_channels: Channels seen across all bouquets
        failed: Picons that could not be loaded
    """
    logger.info(f"Picon preload complete: {loaded}/{total_channels} logos loaded")
    if failed:
        logger.info(f"  {failed} logos failed to load (missing picons)")
