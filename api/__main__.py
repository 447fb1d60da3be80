"""Command line interface for running the API server."""
import logging

import uvicorn
import uvloop

from config import load_settings, SettingsError
from . import create_app

logger = logging.getLogger(__name__)


class UvicornServer:
    """Wrapper for running uvicorn with proper lifecycle management."""

    def __init__(self, app, host: str = "0.0.0.0", port: int = 4000, log_level: str = "info"):
        self.config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=log_level
        )
        self.server = uvicorn.Server(self.config)

    async def run(self):
        """Run the server until it is asked to stop."""
        await self.server.serve()


async def main():
    """Load settings and serve the API."""
    try:
        settings = load_settings()
    except SettingsError as e:
        logger.error(str(e))
        raise SystemExit(1)

    logging.getLogger().setLevel(settings['log_level'])

    server = UvicornServer(
        create_app(settings),
        host=settings['host'],
        port=settings['port'],
        log_level=settings['log_level'].lower()
    )

    logger.info(f"Serving on {settings['host']}:{settings['port']}")
    await server.run()
    logger.info("Server stopped")


if __name__ == "__main__":
    uvloop.run(main())
