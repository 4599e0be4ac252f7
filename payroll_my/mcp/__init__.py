"""Payroll MY MCP server (install with the 'mcp' extra)."""
