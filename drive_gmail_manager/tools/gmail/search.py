"""Gmail search tool.

Searches emails with a whitelisted subset of Gmail's query syntax.
"""

from __future__ import annotations

import logging
from typing import Any

from drive_gmail_manager.app import AppContext
from drive_gmail_manager.schemas.tools import GmailSearchParams
from drive_gmail_manager.services.gmail import GmailService
from drive_gmail_manager.tools.base import build_success_response, execute_tool

logger = logging.getLogger(__name__)


async def gmail_search(app: AppContext, params: GmailSearchParams) -> dict[str, Any]:
    """Search emails within an optional mailbox section.

    Supported query syntax (anything else is dropped):
    - from:, to:, subject:, label:, has:, is:, in:, after:, before:,
      newer_than:, older_than:, filename:, larger:, smaller:
    - AND, OR, NOT and leading "-" for negation
    - "quoted phrases" and plain words

    Args:
        app: Application context.
        params: Search parameters (query, section, max_results).

    Returns:
        Standardized response with message summaries and web links.
    """

    async def _execute() -> dict[str, Any]:
        emails = await app.gmail.search_emails(
            params.query,
            section=params.section,
            max_results=params.max_results,
        )
        for email in emails:
            email["link"] = GmailService.message_link(email.get("id"))

        return build_success_response(
            data=emails,
            message=f"Found {len(emails)} messages",
            count=len(emails),
        )

    return await execute_tool(app.audit, "gmail_search", params.model_dump(), _execute)
