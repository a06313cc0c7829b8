"""
MCP bridge exposing a SearXNG instance as `search` / `get_engines` tools.
"""

SERVER_NAME = "searxng-mcp"
__version__ = "1.0.0"
