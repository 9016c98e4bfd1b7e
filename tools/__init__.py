# =============================================================================
# tools/__init__.py
# =============================================================================
# One FastMCP server per upstream API.  Each *_server.py module:
#   1. Builds its REST client from core/ and the credentials in the env
#   2. Registers the tools, with docstrings the calling model reads
#   3. Runs every call through tools.common.execute_tool (validate → quota
#      → deadline → serialize)
#   4. Serves MCP over stdio until SIGINT / SIGTERM
#
# Run one directly:   python -m tools.slack_server
# =============================================================================
