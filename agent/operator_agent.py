# =============================================================================
# agent/operator_agent.py  -  Google ADK agent wired to the adapter servers
# =============================================================================
#
# HOW IT WORKS:
#
#   ┌────────────────────────────────────────────┐
#   │            Google ADK Agent                │
#   │   prompt ──▶ LiteLlm model ──▶ toolsets    │
#   └────────────────────────────────────────────┘
#                                      │ one MCPToolset per adapter
#                    ┌─────────────────┼─────────────────┐
#                    ▼                 ▼                 ▼
#          python -m tools.     python -m tools.    python -m tools.
#          slack_server         brasil_api_server   ...
#
#   ADK starts each adapter as a stdio subprocess.  The subprocess inherits
#   the environment, so credentials loaded from .env reach it unchanged.
#
# MODEL:
#   ASSISTANT_MODEL (any LiteLLM model string), default
#   "openrouter/openai/gpt-4o".  LiteLLM reads the provider key
#   (e.g. OPENROUTER_API_KEY) from the environment.
# =============================================================================

import logging
import os
from typing import Optional

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool.mcp_toolset import MCPToolset, StdioServerParameters

from agent.prompt import get_operator_prompt
from core.config import adapter_launch_command, available_adapters

logger = logging.getLogger("agent")

DEFAULT_MODEL = "openrouter/openai/gpt-4o"


def build_toolsets(adapters: list[str]) -> list[MCPToolset]:
    """One stdio MCPToolset per adapter name."""
    toolsets = []
    for name in adapters:
        command, args = adapter_launch_command(name)
        toolsets.append(
            MCPToolset(
                connection_params=StdioServerParameters(
                    command=command,
                    args=args,
                    env=dict(os.environ),
                ),
            )
        )
    return toolsets


def create_agent(adapters: Optional[list[str]] = None) -> Agent:
    """Create the operator agent with every configured adapter attached.

    Args:
        adapters: Adapter names to attach.  Defaults to every adapter whose
            credentials are present in the environment.
    """
    if adapters is None:
        adapters = available_adapters()
    logger.info("Attaching adapters: %s", ", ".join(adapters) or "none")

    return Agent(
        name="adapter_operator",
        model=LiteLlm(model=os.environ.get("ASSISTANT_MODEL", DEFAULT_MODEL)),
        instruction=get_operator_prompt(adapters),
        tools=build_toolsets(adapters),
    )
