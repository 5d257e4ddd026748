# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the authenticated request pipeline for BuschGPT:
# settings, the token lifecycle, and the query dispatcher.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or anything from tools/.  The
#   pipeline only knows about HTTP (httpx) and JWTs (PyJWT).  The MCP
#   surface is a thin wrapper around it, so the pipeline can be driven from
#   a test, a REPL or the --ask loop exactly as the MCP server drives it.
# =============================================================================
