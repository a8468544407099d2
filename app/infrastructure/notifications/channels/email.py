"""Email delivery through SendGrid."""

from __future__ import annotations

import json
import logging
from typing import Any

from anyio import to_thread
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.application.use_cases.notifications.errors import ChannelDeliveryError
from app.domain.entities import NotificationChannel

logger = logging.getLogger(__name__)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                str(item["message"])
                for item in errors
                if isinstance(item, dict) and item.get("message")
            ]
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_failure(source: Any) -> str:
    status_code = getattr(source, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(source, "body", None))
    if status_code and details:
        return f"SendGrid responded with status {status_code}: {details}"
    if status_code:
        return f"SendGrid responded with status {status_code}"
    if details:
        return f"SendGrid request failed: {details}"
    return f"SendGrid request failed: {source}"


class SendGridEmailSender:
    """Send HTML email with the configured SendGrid account.

    The SendGrid client is synchronous, so each send runs in a worker thread.
    Every non-2xx outcome raises :class:`ChannelDeliveryError`.
    """

    def __init__(self, api_key: str, sender: str) -> None:
        self._api_key = api_key
        self._sender = sender

    async def __call__(self, to: str, subject: str, html: str) -> None:
        await to_thread.run_sync(self._send, to, subject, html)

    def _send(self, to: str, subject: str, html: str) -> None:
        message = Mail(
            from_email=self._sender,
            to_emails=to,
            subject=subject,
            html_content=html,
        )

        try:
            client = SendGridAPIClient(self._api_key)
            response = client.send(message)
        except Exception as exc:
            reason = _describe_failure(exc)
            logger.error("%s", reason)
            raise ChannelDeliveryError(NotificationChannel.EMAIL, reason) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            reason = _describe_failure(response)
            logger.error("%s", reason)
            raise ChannelDeliveryError(NotificationChannel.EMAIL, reason)

        logger.debug("Email sent to %s", to)


__all__ = ["SendGridEmailSender"]
