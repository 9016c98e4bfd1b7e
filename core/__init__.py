# =============================================================================
# core/__init__.py
# =============================================================================
# Request governance (rate limits, deadlines), configuration, the error
# taxonomy and one async REST client per upstream API.
#
# Nothing in this package imports FastMCP or Google ADK.  Every module here
# can be imported and tested without an MCP host.
# =============================================================================
