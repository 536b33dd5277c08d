#!/usr/bin/env python3
"""Run the KC Frequency Omnibus web server."""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from omnibus.config import get_settings


def main():
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logging.getLogger(__name__).info(
        f"Serving {settings.APP_NAME} on http://{settings.API_HOST}:{settings.API_PORT} "
        f"(docs at /docs, reload={settings.RELOAD}, database={settings.database_source})"
    )

    uvicorn.run(
        "server.app:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
