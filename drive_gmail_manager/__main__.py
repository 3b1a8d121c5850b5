"""Entry point for the Drive & Gmail Manager MCP server.

Usage:
    python -m drive_gmail_manager                  # STDIO (default)
    TRANSPORT=sse python -m drive_gmail_manager    # SSE via uvicorn
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from drive_gmail_manager.config import is_development

logger = logging.getLogger(__name__)

REQUIRED_VARS = ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET")
APP_ENVS = ("production", "development", "dev")
TRANSPORTS = ("stdio", "sse", "http", "streamable-http")

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("googleapiclient", "google.auth", "google_auth_oauthlib", "urllib3")


def configure_logging() -> None:
    """Configure logging to stderr (STDIO-safe).

    Stdout carries MCP JSON-RPC messages on the STDIO transport, so every
    log line goes to stderr. LOG_LEVEL wins when set; otherwise development
    mode logs at DEBUG and production at INFO.
    """
    default_level = "DEBUG" if is_development() else "INFO"
    level_name = os.getenv("LOG_LEVEL", default_level).upper()
    level = logging.getLevelNamesMapping().get(level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def find_configuration_problems() -> list[str]:
    """List everything wrong with the environment, empty if nothing is."""
    problems: list[str] = []

    missing = [var for var in REQUIRED_VARS if not os.getenv(var)]
    if missing:
        problems.append(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    oauth_port = os.getenv("OAUTH_PORT", "3000")
    if not oauth_port.isdigit() or not 1 <= int(oauth_port) <= 65535:
        problems.append("OAUTH_PORT must be a port number between 1 and 65535")

    if os.getenv("APP_ENV", "production").lower() not in APP_ENVS:
        problems.append("APP_ENV must be 'production' or 'development'")

    if os.getenv("TRANSPORT", "stdio").lower() not in TRANSPORTS:
        problems.append(f"TRANSPORT must be one of: {', '.join(TRANSPORTS)}")

    return problems


def validate_environment() -> bool:
    """Log each configuration problem.

    Returns:
        True if the server can start, False otherwise.
    """
    problems = find_configuration_problems()
    for problem in problems:
        logger.error(problem)
    return not problems


def serve(mcp: FastMCP, transport: str) -> None:
    """Run the server on the named transport until it exits."""
    match transport:
        case "sse" | "http":
            host = os.getenv("HOST", "127.0.0.1")
            port = int(os.getenv("PORT", "8000"))
            logger.info("Serving over SSE on %s:%d", host, port)
            try:
                import uvicorn
            except ImportError:
                logger.error("SSE transport needs uvicorn: pip install uvicorn")
                sys.exit(1)
            uvicorn.run(mcp.sse_app(), host=host, port=port, log_level="info")
        case "streamable-http":
            logger.info("Serving over streamable HTTP")
            mcp.run(transport="streamable-http")
        case _:
            logger.info("Serving over STDIO")
            mcp.run(transport="stdio")


def main() -> None:
    """Load .env, check the environment, then build and run the server."""
    load_dotenv()
    configure_logging()

    if not validate_environment():
        logger.error("Environment validation failed. Exiting.")
        sys.exit(1)

    # Imported late so a bad environment fails before any wiring happens
    from drive_gmail_manager.server import create_server

    serve(create_server(), os.getenv("TRANSPORT", "stdio").lower())


if __name__ == "__main__":
    main()
