"""StatScope entry point."""

import uvicorn

from statscope.config import settings


def main():
    """Run the StatScope API server."""
    uvicorn.run(
        "statscope.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
