#!/usr/bin/env python3
"""
MCP server exposing the AltText.ai API as tools.

Tools: get_account, update_account, generate_alt_text,
generate_alt_text_from_file, translate_image, list_images, search_images,
get_image, update_image, delete_image, bulk_create, scrape_page.

Requires env var: ALTTEXT_API_KEY
Optional: ALTTEXT_API_BASE_URL (e.g. a staging origin), ALTTEXT_LOG_LEVEL
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

from alttext_mcp.api.client import AltTextClient
from alttext_mcp.api.errors import ConfigError
from alttext_mcp.config import Settings, configure_logging, load_env_file
from alttext_mcp.tools import AltTextTools, register_tools

try:
    from mcp.server.fastmcp import FastMCP
except Exception as e:
    raise RuntimeError(
        "The 'mcp' package is required. Install with `pip install mcp`."
    ) from e

logger = logging.getLogger(__name__)

SERVER_NAME = "alttext-ai"


def build_server(settings: Settings, client: Optional[AltTextClient] = None) -> FastMCP:
    client = client or AltTextClient.from_settings(settings)
    server = FastMCP(SERVER_NAME)
    register_tools(server, AltTextTools(client))
    return server


def main() -> None:
    load_env_file()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)
    server = build_server(settings)
    logger.info(f"AltText.ai MCP server running on stdio ({settings.base_url})")
    # Runs a stdio MCP server. Compatible with most MCP clients (e.g., Claude Desktop).
    server.run()


if __name__ == "__main__":
    main()
