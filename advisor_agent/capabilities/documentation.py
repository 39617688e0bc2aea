"""Site documentation capability — static help text about the platform."""

from typing import Any

from .base import Capability

SITE_DOCUMENTATION = """\
Advisor platform overview

Clients
  - The client list shows every client in your book; archived clients are hidden by default.
  - Open a client to see profile, risk profile, assets and notes.
  - New clients receive an onboarding email; a client is "onboarded" once it is completed.

Meetings
  - The calendar shows your meetings by day, week and month.
  - New meetings and changes are always confirmed in a dialog before they are saved.
  - Invitations are emailed to the client when a meeting is confirmed.

Assistant
  - Ask for a client's profile ("client details for Mario Rossi").
  - Ask for your agenda ("meetings today", "meetings this week").
  - Ask for the latest market news ("financial news").
"""


class GetSiteDocumentationCapability(Capability):
    """Return the platform help text."""

    @property
    def name(self) -> str:
        return "get_site_documentation"

    @property
    def description(self) -> str:
        return "Return documentation describing the advisor platform's features."

    async def execute(self, args: Any, caller_id: int) -> dict[str, Any]:
        return {"success": True, "documentation": SITE_DOCUMENTATION}
