"""
Main entrypoint: FastAPI ledger server.

Env: NESTERA_DB_URL / NESTERA_DB_PATH, NESTERA_API_HOST, PORT, LOG_LEVEL, etc.

Equivalent: uvicorn nestera.api_server.server:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from nestera.nestera_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the ledger API in the main thread."""
    from nestera.config.settings import get_settings

    settings = get_settings()
    logger.info("main_api_starting", host=settings.api_host, port=settings.api_port)

    import uvicorn
    from nestera.api_server.server import app

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
