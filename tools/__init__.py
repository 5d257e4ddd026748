# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrapper.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between MCP and core/.  It:
#     1. Declares the tool's name, description and input schema
#     2. Hands the query to core.dispatcher.QueryDispatcher
#     3. Translates core errors into MCP tool errors
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT talk HTTP or handle tokens (that's in core/)
#   - They do NOT read configuration (main.py does, once, at startup)
# =============================================================================
