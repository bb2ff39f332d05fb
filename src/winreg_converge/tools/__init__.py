"""MCP tool registration package.

Call ``register_all_tools(mcp)`` after creating the FastMCP instance
to register the tool handlers.
"""

from winreg_converge.tools import registry_tools


def register_all_tools(mcp):
    """Register all tool handlers on *mcp*."""
    registry_tools.register(mcp)
