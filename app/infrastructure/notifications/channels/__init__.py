"""Transport adapters for the rich notification channels."""

from __future__ import annotations

import logging

import httpx

from app.config import Settings

from .base import (
    ChannelSenders,
    ChatSender,
    EmailSender,
    PushSender,
    SmsSender,
    WebhookSender,
)
from .email import SendGridEmailSender
from .http import HttpWebhookSender, SlackChatSender
from .push import FirebasePushSender, TokenLookup, initialize_firebase
from .sms import TwilioSmsSender

logger = logging.getLogger(__name__)


def build_channel_senders(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient,
    token_lookup: TokenLookup,
) -> ChannelSenders:
    """Create the senders whose credentials are present in ``settings``."""

    senders = ChannelSenders(
        webhook=HttpWebhookSender(http_client),
        chat=SlackChatSender(http_client),
    )

    if settings.sendgrid_api_key and settings.sendgrid_sender:
        senders.email = SendGridEmailSender(settings.sendgrid_api_key, settings.sendgrid_sender)
    else:
        logger.info("SendGrid configuration incomplete; email channel disabled")

    if (
        settings.twilio_account_sid
        and settings.twilio_auth_token
        and settings.twilio_sms_number
    ):
        senders.sms = TwilioSmsSender(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_sms_number,
        )
    else:
        logger.info("Twilio configuration incomplete; sms channel disabled")

    if settings.firebase_credentials_path:
        app = initialize_firebase(settings.firebase_credentials_path)
        senders.push = FirebasePushSender(token_lookup, app)
    else:
        logger.info("Firebase credentials not configured; push channel disabled")

    return senders


__all__ = [
    "ChannelSenders",
    "ChatSender",
    "EmailSender",
    "FirebasePushSender",
    "HttpWebhookSender",
    "PushSender",
    "SendGridEmailSender",
    "SlackChatSender",
    "SmsSender",
    "TokenLookup",
    "TwilioSmsSender",
    "WebhookSender",
    "build_channel_senders",
]
