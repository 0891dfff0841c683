#!/usr/bin/env python3
"""Entry point for running the Boss Rush server.

Run with: python -m bossrush.game_server
Or, once installed: bossrush-server
"""

import uvicorn

from bossrush.utils.config import get_port


def main() -> None:
    from bossrush.game_server.server import app

    uvicorn.run(app, host="0.0.0.0", port=get_port())


if __name__ == "__main__":
    main()
