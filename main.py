"""
Weather & App Platform MCP Server - Entry Point

Run with: python main.py [weather|digitalocean|all]

The server speaks MCP over stdio, so stdout is reserved for protocol
messages and all logging goes to stderr.

Configuration:
- MCP_SERVER: which tool set to expose (default: all)
- LOG_LEVEL: logging level (default: INFO)
- DIGITALOCEAN_TOKEN / DO_TOKEN: App Platform API token
"""
import logging
import os
import sys

from dotenv import dotenv_values, find_dotenv

from tools.credentials import TOKEN_ENV_VARS, CredentialResolver


def load_project_env() -> None:
    """Load .env settings except API tokens, which CredentialResolver reads in order."""
    path = find_dotenv(usecwd=True)
    if not path:
        return
    for key, value in dotenv_values(path).items():
        if key not in TOKEN_ENV_VARS and value is not None:
            os.environ.setdefault(key, value)


# Load environment variables
load_project_env()

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# Import servers after logging is configured
from api.servers import SERVER_NAMES, create_server


def select_server_name(argv: list[str]) -> str:
    """Pick the server from the first CLI argument, then MCP_SERVER."""
    if len(argv) > 1:
        return argv[1].strip().lower()
    return os.getenv("MCP_SERVER", "all").strip().lower()


def main(argv: list[str]) -> int:
    name = select_server_name(argv)
    if name not in SERVER_NAMES:
        logger.error(f"Unknown server '{name}', expected one of: {', '.join(SERVER_NAMES)}")
        return 2

    server = create_server(name)

    logger.info("=" * 60)
    logger.info(f"MCP server '{server.name}' starting on stdio")
    if name in ("digitalocean", "all"):
        if CredentialResolver().resolve() is None:
            logger.warning("No DigitalOcean token configured - tools will need an explicit token")
        else:
            logger.info("DigitalOcean token found")
    logger.info(f"Log level: {log_level}")
    logger.info("=" * 60)

    server.run(transport="stdio")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    run()
