#!/usr/bin/env python3
"""
Entry point for the room directory service.
Starts the uvicorn server programmatically.
"""

import os
import sys


def main():
    # Change to executable directory so config.json next to a frozen build is found
    if getattr(sys, "frozen", False):
        os.chdir(os.path.dirname(sys.executable))

    # Import uvicorn and app after path setup
    import uvicorn

    from roomlink.config.app_settings import app_config
    from roomlink.main import app

    uvicorn.run(
        app,
        host=app_config.server.host,
        port=app_config.server.port,
        log_level=app_config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
