# Tests package
"""
Unit tests for the Weather & App Platform MCP tools.

Test categories:
- test_credentials.py: Token discovery order and caching
- test_http_client.py: Request executor and response normalization
- test_weather.py / test_digitalocean.py: API clients
- test_servers.py: MCP tool registration and tool functions
"""
