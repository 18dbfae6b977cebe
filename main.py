#!/usr/bin/env python3
import logging
import os

import uvicorn

from query_studio.app import create_app
from query_studio.core.config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create the FastAPI app
app = create_app()


if __name__ == "__main__":
    host = os.getenv("QUERY_STUDIO_HOST", "0.0.0.0")
    port = int(os.getenv("QUERY_STUDIO_PORT", "8000"))
    reload_enabled = os.getenv("QUERY_STUDIO_DEV_MODE", "false").lower() == "true"

    logging.getLogger(__name__).info("Starting Query Studio on %s:%s", host, port)
    uvicorn.run("main:app", host=host, port=port, reload=reload_enabled)
