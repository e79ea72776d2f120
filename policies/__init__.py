# Policies package
"""
Policy-driven configuration for the Weather & App Platform MCP tools.

Runtime settings are stored in JSON so they can be tuned without code changes:
- API endpoints and client identifiers
- HTTP timeout and error excerpt length
- Input validation bounds
- Credential cache TTL (disabled by default)
"""

from pathlib import Path
import json

POLICIES_DIR = Path(__file__).parent


def load_server_config() -> dict:
    """Load server configuration from JSON."""
    config_path = POLICIES_DIR / "server_config.json"
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# Pre-load config on import
SERVER_CONFIG = load_server_config()
