"""Main entry point for the API server."""

import logging
import os
import sys

import uvicorn

from src.api.app import app
from src.config import get_settings


def serve() -> None:
    """Run the API with uvicorn (HOST/PORT from the environment)."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    host = os.environ.get("HOST", "127.0.0.1")
    port_str = os.environ.get("PORT", "8000")
    try:
        port = int(port_str)
        if not (1 <= port <= 65535):
            raise ValueError("Port out of range")
    except ValueError:
        print(f"Error: Invalid PORT value '{port_str}'. Must be an integer between 1-65535.")
        sys.exit(1)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    serve()
