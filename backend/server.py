from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from app.main import app as api_app
from services import settings

# Load .env from backend dir (where server.py runs)
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))
logging.basicConfig(level=logging.INFO)


def main() -> None:
    host = settings.get_host()
    port = settings.get_port()
    for route in api_app.routes:
        if hasattr(route, "path") and hasattr(route, "methods"):
            logging.info("App route: %s %s", list(route.methods) if route.methods else "GET", route.path)
    logging.info("[server] Serving Infraread API on http://%s:%d", host, port)
    uvicorn.run(api_app, host=host, port=port)


if __name__ == "__main__":
    main()
