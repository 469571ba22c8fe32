"""Objective Documents MCP Server - Model Context Protocol integration.

Lets AI assistants read objective documents and revise the version bound
to their chat session through the Objective Documents API.

Modules:
- server: stdio MCP server implementation
- formatters: Response formatting utilities
- tools: MCP tool definitions
- handlers: Tool implementation handlers
"""

__version__ = "1.0.0"

from . import formatters
from . import tools
from . import handlers

__all__ = ["formatters", "tools", "handlers", "__version__"]
