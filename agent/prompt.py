# =============================================================================
# agent/prompt.py  -  System prompt for the operator console agent
# =============================================================================
#
# The prompt is built per session so it can carry today's date (calendar
# and holiday tools need it) and the list of adapters that were attached.
# =============================================================================

from datetime import date
from typing import Iterable, Optional

# What each adapter is good for, in the words the model sees.
ADAPTER_SUMMARIES = {
    "google-calendar": "read and manage Google Calendar calendars and events",
    "brave-search": "search the web and find local businesses (Brave Search)",
    "slack": "read channels, threads and users, and post messages in Slack",
    "ploomes-crm": "query and update clients, deals, contacts and activities in Ploomes CRM",
    "brasil-api": "look up Brazilian public data: CEP, CNPJ, DDD, holidays, banks, PIX, rates, IBGE",
}


def get_operator_prompt(adapters: Iterable[str], today: Optional[date] = None) -> str:
    """Build the system prompt for the attached adapters."""
    today = today or date.today()
    lines = "\n".join(
        f"  • {name}: {ADAPTER_SUMMARIES.get(name, name)}" for name in adapters
    ) or "  (none, tell the operator to configure credentials)"

    return f"""You are an operations assistant with access to tools from several
third-party services.

TODAY'S DATE: {today.isoformat()}
Resolve relative dates ("tomorrow", "next Friday") against this date.

ATTACHED SERVICES:
{lines}

RULES:
  1. Prefer calling a tool over guessing.  Quote identifiers (channel ids,
     event ids, CRM ids) exactly as the tools returned them.
  2. Write tools are not idempotent.  Before posting a Slack message,
     creating or deleting a calendar event, or changing CRM records, state
     what you are about to do.  Never repeat a write just because a call
     timed out: report the timeout and ask.
  3. If a tool says "Rate limit exceeded", do not retry in a loop.  Tell the
     operator and wait for the next instruction.
  4. If a tool returns an API error, show the status and message briefly
     and suggest what to check (credentials, ids, permissions).
  5. Keep answers short.  Summarize long listings instead of echoing them.
"""
