"""Outbound HTTP action: JSON/text body, auth headers, bounded timeout."""

import asyncio
import base64
import json
import logging
from typing import Any, Optional

import httpx
import jmespath

from minizap.actions.builtin.base import BaseHandler, timeout_ms
from minizap.exceptions import HandlerConfigError
from minizap.types import ActionResult, ExecutionContext

logger = logging.getLogger(__name__)

_BODYLESS_METHODS = ("GET", "HEAD")


def _apply_auth(headers: httpx.Headers, config: dict[str, Any]) -> None:
    auth_type = config.get("auth_type")
    token = config.get("auth_token")
    if not auth_type or not token:
        return
    if auth_type == "bearer":
        headers["Authorization"] = f"Bearer {token}"
    elif auth_type == "api_key":
        headers["X-API-Key"] = str(token)
    elif auth_type == "basic":
        username, password = config.get("auth_username"), config.get("auth_password")
        if username and password:
            encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
            headers["Authorization"] = f"Basic {encoded}"


def _parse_response_body(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


async def _send_request(
    method: str,
    url: str,
    headers: httpx.Headers,
    content: Optional[str],
    timeout_seconds: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    """Execute a single HTTP request and return the fully-read response."""
    async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
        return await client.request(method, url, headers=headers, content=content)


class WebhookHandler(BaseHandler):
    action_type = "webhook"
    label = "Webhook"

    def __init__(
        self,
        default_timeout_ms: int = 30000,
        user_agent: str = "Mini-Zapier/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.default_timeout_ms = default_timeout_ms
        self.user_agent = user_agent
        self._transport = transport

    async def run(self, config: dict[str, Any], context: ExecutionContext) -> ActionResult:
        url = config.get("url")
        if not url:
            raise HandlerConfigError("Webhook URL is required")
        method = str(config.get("method") or "POST").upper()
        limit_ms = timeout_ms(config, self.default_timeout_ms)

        headers = httpx.Headers({"Content-Type": "application/json", "User-Agent": self.user_agent})
        custom = config.get("headers")
        if isinstance(custom, dict):
            headers.update({str(k): str(v) for k, v in custom.items()})
        _apply_auth(headers, config)

        content = None
        body = config.get("body")
        if body not in (None, "") and method not in _BODYLESS_METHODS:
            if isinstance(body, str):
                content = body
                if not body.startswith("{"):
                    headers["Content-Type"] = "text/plain"
            else:
                content = json.dumps(body, default=str)

        logger.debug(f"[Webhook] {method} {url} (timeout {limit_ms}ms)")
        try:
            response = await asyncio.wait_for(
                _send_request(method, url, headers, content, limit_ms / 1000, self._transport),
                timeout=limit_ms / 1000,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.warning(f"[Webhook] {method} {url} timed out after {limit_ms}ms")
            return ActionResult.fail(f"Webhook request timed out after {limit_ms}ms")

        payload = _parse_response_body(response)
        if not response.is_success:
            return ActionResult.fail(
                f"Webhook request failed with status {response.status_code}: {response.reason_phrase}",
                data={
                    "status": response.status_code,
                    "statusText": response.reason_phrase,
                    "response": payload,
                },
            )

        response_path = config.get("response_path")
        if response_path:
            payload = jmespath.search(response_path, payload)

        return ActionResult.ok({
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "headers": dict(response.headers),
            "response": payload,
        })
