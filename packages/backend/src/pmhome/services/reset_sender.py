"""Delivery of password reset links.

Learn: Sending mail is an external collaborator. The service only needs
something with `send(email, link)`. The default sender writes the link to
the log in development so the flow can be exercised locally, and only
records that a link was issued everywhere else.
"""

from typing import Protocol

import structlog

from pmhome.config import settings

logger = structlog.get_logger()


class ResetLinkSender(Protocol):
    async def send(self, email: str, link: str) -> None: ...


class LoggingResetLinkSender:
    """Development stand-in for a mailer."""

    def __init__(self, reveal_links: bool | None = None):
        if reveal_links is None:
            reveal_links = settings.environment == "development"
        self.reveal_links = reveal_links

    async def send(self, email: str, link: str) -> None:
        if self.reveal_links:
            logger.info("password_reset.link_issued", email=email, link=link)
        else:
            logger.info("password_reset.link_issued", email=email)


def build_reset_link(token: str, base: str | None = None) -> str:
    base = (base or settings.reset_url_base).rstrip("/")
    return f"{base}?token={token}"
