"""
SMTP notification adapter - Implements NotificationGateway protocol.

Renders <template_name>.txt and <template_name>.html from the templates
directory with Jinja2 and sends them as one multipart/alternative message.
The HTML part is autoescaped; the confirmation link is built in the
template from the base_url global and the token field.
"""

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path

import jinja2

from src.domain.exceptions import NotificationError
from src.domain.ports import NotificationFields

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


def build_template_environment(base_url: str, templates_dir: Path = TEMPLATES_DIR) -> jinja2.Environment:
    """Create the Jinja2 environment used for email bodies."""
    environment = jinja2.Environment(
        loader=jinja2.FileSystemLoader(templates_dir),
        autoescape=jinja2.select_autoescape(enabled_extensions=("html",), default_for_string=False),
        undefined=jinja2.StrictUndefined,
    )
    environment.globals["base_url"] = base_url.rstrip("/")
    return environment


class SmtpNotificationGateway:
    """
    Implements NotificationGateway protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    A new SMTP connection is opened per message; the timeout bounds both
    connect and each command.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        templates: jinja2.Environment,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._templates = templates
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send(self, template_name: str, recipient_email: str, fields: NotificationFields) -> None:
        """
        Render the named template and deliver it to recipient_email.

        Raises:
            NotificationError: If a template is missing or fails to render,
                or the SMTP exchange fails
        """
        message = self._build_message(template_name, recipient_email, fields)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._use_tls:
                    smtp.starttls()
                if self._username:
                    smtp.login(self._username, self._password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send {template_name} to {recipient_email}: {e}") from e
        logger.info("Sent %s to %s", template_name, recipient_email)

    def _build_message(
        self, template_name: str, recipient_email: str, fields: NotificationFields
    ) -> EmailMessage:
        try:
            text_body = self._templates.get_template(f"{template_name}.txt").render(**fields)
            html_body = self._templates.get_template(f"{template_name}.html").render(**fields)
        except jinja2.TemplateError as e:
            raise NotificationError(f"Failed to render {template_name}: {e}") from e

        message = EmailMessage()
        message["Subject"] = fields["subject_line"]
        message["From"] = self._sender
        message["To"] = recipient_email
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message
