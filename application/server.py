"""Hypercorn configuration for long-lived SSE responses."""

import logging
import os

from hypercorn.config import Config

logger = logging.getLogger(__name__)


def build_hypercorn_config() -> Config:
    """
    Hypercorn config from the environment.

    Environment variables:
        APP_HOST: Host to bind to (default: 127.0.0.1)
        APP_PORT: Port to bind to (default: 8000)
        APP_DEBUG: Enable debug mode (default: false)
        APP_TIMEOUT: Keep-alive / shutdown timeout in seconds (default: 600)
    """
    host = os.getenv("APP_HOST", "127.0.0.1")  # Default to localhost for security
    port = int(os.getenv("APP_PORT", "8000"))
    debug = os.getenv("APP_DEBUG", "false").lower() == "true"
    timeout = int(os.getenv("APP_TIMEOUT", "600"))

    config = Config()
    config.bind = [f"{host}:{port}"]

    # Timeouts sized for long-running SSE streams
    config.keep_alive_timeout = timeout
    config.shutdown_timeout = timeout
    config.startup_timeout = timeout
    config.graceful_timeout = 30

    if debug:
        config.loglevel = "DEBUG"
        config.accesslog = "-"  # Log to stdout
        config.errorlog = "-"

    logger.info(f"Starting Bakame chat API on {host}:{port}")
    logger.info(f"Keep-alive timeout: {timeout}s, debug mode: {debug}")
    return config
