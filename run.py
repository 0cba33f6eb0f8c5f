#!/usr/bin/env python3
"""
Run script for the Product Page Optimizer.

Starts the FastAPI server with settings-driven configuration and graceful
failure handling.
"""

import sys

import uvicorn

from product_optimizer import __version__
from product_optimizer.config import get_service_logger, get_settings, setup_logging

settings = get_settings()


def print_startup_info():
    """Print startup configuration for visibility."""
    print("Product Page Optimizer")
    print("=" * 50)
    print(f"Version: {__version__}")
    print(f"Host: {settings.host}")
    print(f"Port: {settings.port}")
    print(f"Debug: {settings.debug}")
    print(f"Log Level: {settings.log_level}")
    print(f"Provider: {settings.provider_model if settings.provider_enabled else 'offline'}")
    print(f"Durable Cache: {settings.cache_db_path if settings.enable_durable_cache else 'disabled'}")
    print(f"Extractor Timeout: {settings.extractor_timeout}s")
    print("=" * 50)
    print(f"API Documentation: http://{settings.host}:{settings.port}/docs")
    print(f"Health Check: http://{settings.host}:{settings.port}/health")
    print("=" * 50)


def main():
    """Main entry point for the Product Page Optimizer."""
    setup_logging()
    logger = get_service_logger(__name__)
    print_startup_info()

    uvicorn_config = {
        "app": "product_optimizer.api.server:app",
        "host": settings.host,
        "port": settings.port,
        "log_level": settings.log_level.lower(),
        "access_log": True,
        "reload": settings.debug,
        "reload_dirs": ["product_optimizer"] if settings.debug else None,
        "workers": 1,
    }

    try:
        logger.info("Starting Product Page Optimizer FastAPI server...")
        uvicorn.run(**uvicorn_config)
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
