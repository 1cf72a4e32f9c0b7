"""Run the storefront http api with uvicorn.

Usage:
    python src/server.py
    python src/server.py --host 0.0.0.0 --port 8080 --reload
"""

import argparse

import uvicorn

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger("server")


def main() -> None:
    parser = argparse.ArgumentParser(description="Storefront API server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", help="Reload on code change")
    args = parser.parse_args()

    _logger.info(f"Serving storefront api on http://{args.host}:{args.port}")
    _logger.info(f"Database: {settings.db_path}")

    # When reload is enabled, uvicorn requires the app as an import string
    app_target = "api.app:app" if args.reload else None
    if app_target is None:
        from api.app import app

        app_target = app

    uvicorn.run(app_target, host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
