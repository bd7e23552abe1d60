"""Email action over SMTP (aiosmtplib). Providers: smtp, gmail, sendgrid."""

import asyncio
import logging
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Optional

import aiosmtplib

from minizap.actions.builtin.base import BaseHandler, flag, require, timeout_ms
from minizap.credentials.integrations import IntegrationResolver
from minizap.exceptions import CredentialError, HandlerConfigError
from minizap.types import ActionResult, ExecutionContext

logger = logging.getLogger(__name__)

GMAIL_SMTP = ("smtp.gmail.com", 587)
SENDGRID_SMTP = ("smtp.sendgrid.net", 587)


def build_message(sender: str, to: Any, subject: str, body: str) -> EmailMessage:
    """Plain-text message with an HTML alternative part."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(to) if isinstance(to, (list, tuple)) else str(to)
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)
    msg.set_content(body)
    msg.add_alternative(body if "<" in body else f"<p>{body}</p>", subtype="html")
    return msg


class EmailHandler(BaseHandler):
    action_type = "email"
    label = "Email"

    def __init__(
        self,
        integrations: Optional[IntegrationResolver] = None,
        default_from: str = "noreply@minizap.local",
        default_timeout_ms: int = 30000,
    ):
        self.integrations = integrations
        self.default_from = default_from
        self.default_timeout_ms = default_timeout_ms

    async def _transport_settings(self, provider: str, config: dict, context: ExecutionContext) -> dict:
        """SMTP connection kwargs for *provider*."""
        if provider == "smtp":
            require(config, ("host", "username", "password"), "Missing SMTP configuration: host, username, password")
            port = int(config.get("port") or 587)
            secure = flag(config.get("secure", False))
            return {
                "hostname": config["host"],
                "port": port,
                "username": config["username"],
                "password": config["password"],
                "use_tls": secure,
                "start_tls": None if secure else True,
            }

        if self.integrations is None:
            raise CredentialError(f"{provider.capitalize()} integration not found")
        credentials = await self.integrations.get_credentials(context.user_id, provider)

        if provider == "gmail":
            if not credentials.get("app_password") or not credentials.get("email"):
                raise CredentialError("Invalid Gmail credentials")
            host, port = GMAIL_SMTP
            return {
                "hostname": host, "port": port, "start_tls": True,
                "username": credentials["email"], "password": credentials["app_password"],
            }

        if not credentials.get("api_key"):
            raise CredentialError("SendGrid API key not found")
        host, port = SENDGRID_SMTP
        return {
            "hostname": host, "port": port, "start_tls": True,
            "username": "apikey", "password": credentials["api_key"],
        }

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        require(
            config, ("provider", "to", "subject", "body"),
            "Missing required email configuration: provider, to, subject, body",
        )
        provider = config["provider"]
        if provider not in ("smtp", "gmail", "sendgrid"):
            raise HandlerConfigError(f"Unsupported email provider: {provider}")

        sender = config.get("from")
        if not sender:
            if provider == "smtp":
                raise HandlerConfigError("From address is required for SMTP provider")
            sender = self.default_from

        limit_ms = timeout_ms(config, self.default_timeout_ms)
        settings = await self._transport_settings(provider, config, context)
        message = build_message(sender, config["to"], str(config["subject"]), str(config["body"]))

        try:
            await asyncio.wait_for(
                aiosmtplib.send(message, timeout=limit_ms / 1000, **settings),
                timeout=limit_ms / 1000,
            )
        except (aiosmtplib.SMTPTimeoutError, asyncio.TimeoutError):
            return ActionResult.fail(f"Email request timed out after {limit_ms}ms")

        logger.info(f"[Email] Sent via {provider} to {message['To']}")
        return ActionResult.ok({
            "messageId": message["Message-ID"],
            "provider": provider,
            "to": config["to"],
            "subject": config["subject"],
        })
