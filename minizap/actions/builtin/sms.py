"""SMS action through the Twilio REST API (httpx form POST, basic auth)."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from minizap.actions.builtin.base import BaseHandler, require, timeout_ms
from minizap.credentials.integrations import IntegrationResolver
from minizap.exceptions import CredentialError, HandlerConfigError
from minizap.types import ActionResult, ExecutionContext

logger = logging.getLogger(__name__)


async def _post_message(
    url: str,
    auth: tuple[str, str],
    form: dict[str, str],
    timeout_seconds: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
        return await client.post(url, data=form, auth=auth)


class SmsHandler(BaseHandler):
    action_type = "sms"
    label = "SMS"

    def __init__(
        self,
        integrations: Optional[IntegrationResolver] = None,
        api_base: str = "https://api.twilio.com/2010-04-01",
        default_timeout_ms: int = 30000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.integrations = integrations
        self.api_base = api_base.rstrip("/")
        self.default_timeout_ms = default_timeout_ms
        self._transport = transport

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        require(config, ("provider", "to", "message"), "Missing required SMS configuration: provider, to, message")
        if config["provider"] != "twilio":
            raise HandlerConfigError(f"Unsupported SMS provider: {config['provider']}")
        return await self._send_twilio(config, context)

    async def _send_twilio(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        if self.integrations is None:
            raise CredentialError("Twilio integration not found")
        credentials = await self.integrations.get_credentials(context.user_id, "twilio")
        sid = credentials.get("accountSid")
        token = credentials.get("authToken")
        phone = credentials.get("phoneNumber")
        if not sid or not token or not phone:
            raise CredentialError("Invalid Twilio credentials")

        to = str(config["to"])
        sender = str(config.get("from") or phone)
        limit_ms = timeout_ms(config, self.default_timeout_ms)
        url = f"{self.api_base}/Accounts/{sid}/Messages.json"

        try:
            response = await asyncio.wait_for(
                _post_message(
                    url, (sid, token), {"To": to, "From": sender, "Body": str(config["message"])},
                    limit_ms / 1000, self._transport,
                ),
                timeout=limit_ms / 1000,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return ActionResult.fail(f"SMS request timed out after {limit_ms}ms")

        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text}
        if not response.is_success:
            return ActionResult.fail(
                f"Twilio SMS failed: {payload.get('message') or response.reason_phrase}",
                data={"status": response.status_code, "response": payload},
            )

        logger.info(f"[SMS] Twilio message {payload.get('sid')} queued to {to}")
        return ActionResult.ok({
            "provider": "twilio",
            "messageId": payload.get("sid"),
            "to": payload.get("to", to),
            "from": payload.get("from", sender),
            "status": payload.get("status"),
            "dateSent": payload.get("date_created"),
        })
