# index_mcp/main.py

"""Command Line Entry Point

Serves the current directory (or INDEX_MCP_PROJECT_ROOTS) as local
projects until interrupted.
"""

import logging
import os
import sys
import threading

from index_mcp.core.config import load_settings
from index_mcp.core.exceptions import ConfigurationError
from index_mcp.core.logging import setup_logging
from index_mcp.services.mcp_server import McpServer
from index_mcp.services.project_context import LocalProjectContext

logger = logging.getLogger(__name__)


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.error(e.message)
        return 1

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    server = McpServer(settings)
    server.register_builtins()

    for root in settings.PROJECT_ROOTS or [os.getcwd()]:
        try:
            server.projects.add(LocalProjectContext(root))
        except ValueError as e:
            logger.error(str(e))

    result = server.start()
    if not result.ok:
        logger.error(f"Could not start server: {result.message}")
        return 1

    logger.info(f"Connect MCP clients to {result.url}")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
