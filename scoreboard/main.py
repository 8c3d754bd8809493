#!/usr/bin/env python3
"""
Scoreboard state server.
Usage: python -m scoreboard.main   (settings come from the environment, see config.py)
"""

import logging

import uvicorn

from .config import Config
from .web import create_app


def main(config_class=Config):
    logging.basicConfig(
        level=config_class.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("🚀 Starting Scoreboard Server...")
    print(f"   Display:    http://localhost:{config_class.PORT}/")
    print(f"   Controller: http://localhost:{config_class.PORT}/control/")

    app = create_app(config_class)
    try:
        uvicorn.run(app, host=config_class.HOST, port=config_class.PORT, log_level=config_class.UVICORN_LOG_LEVEL)
    except KeyboardInterrupt:
        print("\n👋 Exiting...")


if __name__ == "__main__":
    main()
