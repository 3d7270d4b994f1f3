"""
Console notification adapter - Implements NotificationGateway protocol.

This module provides a console-based implementation of the domain's
notification port, logging confirmation tokens for demo purposes.
"""

import logging

from src.domain.ports import NotificationFields

logger = logging.getLogger(__name__)


class ConsoleNotificationGateway:
    """
    Implements NotificationGateway protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints confirmation tokens to stdout.
    """

    def send(self, template_name: str, recipient_email: str, fields: NotificationFields) -> None:
        """
        Log the confirmation token (simulates email delivery).

        In production, this is replaced with the SMTP adapter.
        The token is logged at INFO level to be visible in docker-compose logs.

        Args:
            template_name: Name of the template that would be rendered
            recipient_email: Recipient email address (normalized by domain layer)
            fields: Template fields, including the token
        """
        logger.info(
            "[CONFIRMATION] Email: %s Template: %s Token: %s",
            recipient_email,
            template_name,
            fields["token"],
        )
