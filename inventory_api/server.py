"""HTTP server runner for the inventory API.

Usage:
    python -m inventory_api.server               # HOST/PORT from settings
    python -m inventory_api.server --port 8080   # override the port

For auto-reload during development use uvicorn directly:
    uvicorn inventory_api.main:create_app --factory --reload
"""

import argparse
import errno
import logging
import socket
import sys

import uvicorn

from inventory_api.core.config import get_settings
from inventory_api.core.logging import LOGGER_NAME, configure_logging

logger = logging.getLogger(LOGGER_NAME)


class InventoryServer(uvicorn.Server):
    async def startup(self, sockets=None):
        await super().startup(sockets=sockets)

        # Only reached once the listening socket is bound
        if self.started:
            logger.info(f"Server Listening: http://localhost:{self.config.port}")


def ensure_port_free(host: str, port: int):
    """Raise ``OSError`` (``EADDRINUSE``) when ``host:port`` cannot be bound."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        # Same option uvicorn sets, so TIME_WAIT leftovers don't count as "in use"
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))


def main(argv=None):
    settings = get_settings()
    configure_logging(settings)

    parser = argparse.ArgumentParser(description="Inventory stock management API")
    parser.add_argument("--host", default=settings.HOST)
    parser.add_argument("--port", type=int, default=settings.PORT)
    args = parser.parse_args(argv)

    try:
        ensure_port_free(args.host, args.port)
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error(f"Port {args.port} is already in use.")
        else:
            logger.error(f"Error starting the server: {e}")
        sys.exit(1)

    config = uvicorn.Config(
        "inventory_api.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=settings.LOG_LEVEL.lower(),
    )
    InventoryServer(config).run()


if __name__ == "__main__":
    main()
