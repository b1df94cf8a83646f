"""Tool handler for login.

Opens a visible browser window on the machine running the server and waits
for the user to sign in. No MCP or FastMCP imports; server.py handles the
MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plusblocks.models.tools import LoginOutput
from plusblocks.session import interactive_login

if TYPE_CHECKING:
    from plusblocks.state import AppState


async def handle(state: AppState) -> dict:
    """Handle a login tool call."""
    log = structlog.get_logger().bind(tool="login")
    log.info("handler_called")

    jar = await interactive_login(state.browser, state.session, state.settings.scraper)
    log.info("login_complete", cookie_count=len(jar.cookies))

    output = LoginOutput(
        authenticated=state.session.check_auth_state().authenticated,
        cookie_count=len(jar.cookies),
        message=f"Session saved to {state.session.path}.",
    )
    return output.model_dump(mode="json")
