# =============================================================================
# main.py  -  Operator console for the MCP adapters
# =============================================================================
#
# HOW TO RUN:
#   python main.py
#
# WHAT HAPPENS:
#   1. Loads .env (provider key for the model plus adapter credentials)
#   2. Creates the ADK agent with every configured adapter attached
#      (agent/operator_agent.py)
#   3. Reads operator requests in a loop and prints the agent's answers,
#      showing each tool call as it is made
#
# Each adapter runs as its own subprocess with its own RequestGovernor, so
# quotas and deadlines apply exactly as they would under any MCP host.
# =============================================================================

import asyncio
import logging
import sys

from dotenv import load_dotenv

# LiteLlm and the adapter subprocesses read credentials from the
# environment, so .env must be loaded before the agent is created.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.operator_agent import create_agent

APP_NAME = "adapter_console"
USER_ID = "operator"


async def run_console():
    """Run the operator console until the user quits."""
    print("=" * 70)
    print("  MCP ADAPTER CONSOLE")
    print("  Google ADK + LiteLlm + FastMCP adapters")
    print("=" * 70)
    print("\n🔧 Starting adapters...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(agent=agent, app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Ready.  Type 'quit' to exit.\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break

        if not user_input:
            continue

        user_message = types.Content(role="user", parts=[types.Part(text=user_input)])

        print("\n🤖 Working...\n")
        print("-" * 70)

        final_response = ""
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if event.content and event.content.parts:
                for part in event.content.parts:
                    if getattr(part, "text", None):
                        final_response = part.text
                    if getattr(part, "function_call", None):
                        print(f"  🔧 Calling tool: {part.function_call.name}")

        print("-" * 70)
        if final_response:
            print(f"\n🤖 Agent:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. Check the adapter logs above.")

        print("\n" + "=" * 70)


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)
    asyncio.run(run_console())
