"""Service layer: chunk storage and the MCP server."""
