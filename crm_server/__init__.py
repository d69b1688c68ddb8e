"""In-memory studio CRM exposed as FastMCP tools."""
