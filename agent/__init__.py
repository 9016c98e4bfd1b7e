# =============================================================================
# agent/__init__.py
# =============================================================================
# The operator console's Google ADK agent.
#
# ARCHITECTURAL ROLE:
#   The adapters in tools/ are meant to be driven by an MCP host.  This
#   package is a small one: an ADK agent that launches every adapter whose
#   credentials are configured, as a stdio subprocess, and lets an operator
#   exercise the tools in plain language from main.py.
#
# WHAT THE AGENT IS NOT:
#   - It does NOT talk to the upstream APIs itself (that's tools/ + core/)
#   - It does NOT enforce quotas (each adapter process owns its governor)
# =============================================================================
