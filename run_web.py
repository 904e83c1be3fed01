#!/usr/bin/env python3
"""
Start the shuffle tournament admin API under uvicorn.

    python run_web.py                          # SHUFFLE_HOST:SHUFFLE_PORT (127.0.0.1:8000)
    python run_web.py --host 0.0.0.0 --port 9000
    python run_web.py --data-dir /srv/shuffle  # database location for this run
    python run_web.py --reload                 # restart on source changes

Other settings (database file name, team size default, log level) come from
SHUFFLE_* environment variables or a .env file.
"""
import argparse
import logging
import os

import uvicorn

from cs2shuffle.config import get_settings


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the CS2 shuffle tournament API")
    parser.add_argument("--host", default=settings.host,
                        help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port,
                        help=f"Bind port (default: {settings.port})")
    parser.add_argument("--data-dir", default=None,
                        help=f"Database directory (default: {settings.data_dir})")
    parser.add_argument("--reload", action="store_true", help="Watch sources and restart on change")
    args = parser.parse_args()

    # The app builds its service from settings, possibly in a reloader child process
    if args.data_dir:
        os.environ["SHUFFLE_DATA_DIR"] = args.data_dir
        get_settings.cache_clear()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logging.getLogger(__name__).info(
        f"Shuffle API on http://{args.host}:{args.port} (docs at /docs)"
    )

    uvicorn.run(
        "cs2shuffle.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
