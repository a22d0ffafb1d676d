"""Entry point for running the recipe MCP server."""

from __future__ import annotations

import logging

from recipe_data.config import Config
from recipe_data.server import create_server


def main() -> None:
    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    server = create_server(config)
    server.run()


if __name__ == '__main__':
    main()
