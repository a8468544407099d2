"""Tests for channel dispatch through the notification service."""

import pytest

from app.domain.entities import (
    DeliveryState,
    Notification,
    NotificationChannel,
    NotificationDelivered,
    NotificationSent,
    NotificationType,
    Recipient,
)
from app.infrastructure.notifications.dispatcher import render_email_html
from tests.fakes import recording_senders


def _request(*channels: str, **extra) -> dict:
    payload = {
        "userId": "u1",
        "title": "Grade posted",
        "message": "Math: 18",
        "type": "grade_posted",
        "category": "academic",
        "channels": list(channels),
    }
    payload.update(extra)
    return payload


def test_email_html_escapes_message_and_links_action():
    notification = Notification(
        id="n1",
        user_id="u1",
        title="t",
        message="<b>Math</b> & more",
        type=NotificationType.GRADE_POSTED,
        action_url="/grades/1",
    )

    body = render_email_html(notification, "https://school.example.com/")

    assert body == (
        "<p>&lt;b&gt;Math&lt;/b&gt; &amp; more</p>"
        '<p><a href="https://school.example.com/grades/1">View</a></p>'
    )


def test_email_html_without_action_has_no_link():
    notification = Notification(
        id="n1", user_id="u1", title="t", message="Plain", type=NotificationType.MESSAGE
    )

    assert render_email_html(notification, "https://school.example.com") == "<p>Plain</p>"


@pytest.mark.anyio
async def test_email_is_sent_to_the_recipient_address(make_service, senders):
    service = make_service()

    await service.send(_request("email", actionUrl="/grades/1"))
    await service.drain()

    assert len(senders.email.calls) == 1
    to, subject, html = senders.email.calls[0]
    assert to == "ana@example.com"
    assert subject == "Grade posted"
    assert 'href="https://school.example.com/grades/1"' in html


@pytest.mark.anyio
async def test_sms_text_combines_title_and_message(make_service, senders):
    service = make_service()
    await service.update_preferences("u1", {"smsEnabled": True})

    await service.send(_request("sms"))
    await service.drain()

    assert senders.sms.calls == [("+15550001", "Grade posted: Math: 18")]


@pytest.mark.anyio
async def test_push_receives_user_and_action(make_service, senders):
    service = make_service()

    await service.send(_request("push", actionUrl="/grades/1"))
    await service.drain()

    assert senders.push.calls == [("u1", "Grade posted", "Math: 18", "/grades/1")]


@pytest.mark.anyio
async def test_webhook_payload_is_posted_to_every_subscription(make_service, senders, directory):
    directory.add(
        Recipient(id="u1", name="Ana", email="ana@example.com"),
        "https://hooks.example.com/a",
        "https://hooks.example.com/b",
    )
    service = make_service()
    await service.update_preferences("u1", {"webhookEnabled": True})

    created = await service.send(_request("webhook"))
    await service.drain()

    urls = sorted(call[0] for call in senders.webhook.calls)
    assert urls == ["https://hooks.example.com/a", "https://hooks.example.com/b"]
    payload = senders.webhook.calls[0][1]
    assert payload["event"] == "notification"
    assert payload["data"]["id"] == created.id
    assert payload["data"]["title"] == "Grade posted"


@pytest.mark.anyio
async def test_webhook_retry_skips_urls_that_accepted_the_payload(make_service, directory):
    posted: list[str] = []
    failed_once: set[str] = set()

    async def webhook(url: str, payload: dict) -> None:
        posted.append(url)
        if url.endswith("/b") and url not in failed_once:
            failed_once.add(url)
            raise RuntimeError("502 from receiver")

    directory.add(
        Recipient(id="u1", name="Ana", email="ana@example.com"),
        "https://hooks.example.com/a",
        "https://hooks.example.com/b",
    )
    service = make_service(senders=recording_senders(webhook=webhook))
    await service.update_preferences("u1", {"webhookEnabled": True})

    created = await service.send(_request("webhook"))
    await service.drain()

    stored = await service.get_notification(created.id)
    delivery = stored.delivery_status[NotificationChannel.WEBHOOK]
    assert sorted(posted) == [
        "https://hooks.example.com/a",
        "https://hooks.example.com/b",
        "https://hooks.example.com/b",
    ]
    assert delivery.status == DeliveryState.DELIVERED
    assert delivery.attempts == 2
    assert delivery.completed_targets == ["https://hooks.example.com/a"]


@pytest.mark.anyio
async def test_slack_message_uses_bold_title(make_service, senders):
    service = make_service()
    await service.update_preferences("u1", {"slackEnabled": True})

    await service.send(_request("slack"))
    await service.drain()

    assert senders.chat.calls == [("https://hooks.slack.test/T000", "*Grade posted*\nMath: 18")]


@pytest.mark.anyio
async def test_missing_sender_exhausts_retries(make_service):
    """A channel without a configured transport is retried and then failed."""

    service = make_service(senders=recording_senders(email=None))

    created = await service.send(_request("email"))
    await service.drain()

    stored = await service.get_notification(created.id)
    delivery = stored.delivery_status[NotificationChannel.EMAIL]
    assert delivery.status == DeliveryState.FAILED
    assert delivery.attempts == 3
    assert delivery.error == "No email sender configured"


@pytest.mark.anyio
async def test_missing_contact_fails_the_channel(make_service, senders):
    service = make_service()
    await service.update_preferences("u3", {"smsEnabled": True})

    created = await service.send({**_request("sms"), "userId": "u3"})
    await service.drain()

    stored = await service.get_notification(created.id)
    delivery = stored.delivery_status[NotificationChannel.SMS]
    assert delivery.status == DeliveryState.FAILED
    assert delivery.error == "Recipient has no phone number"
    assert senders.sms.calls == []


@pytest.mark.anyio
async def test_unconfigured_slack_webhook_fails_the_channel(make_service, senders):
    service = make_service(slack_webhook_url=None)
    await service.update_preferences("u1", {"slackEnabled": True})

    created = await service.send(_request("slack"))
    await service.drain()

    stored = await service.get_notification(created.id)
    assert stored.delivery_status[NotificationChannel.SLACK].status == DeliveryState.FAILED
    assert senders.chat.calls == []


@pytest.mark.anyio
async def test_sent_and_delivered_events_are_published(make_service):
    service = make_service()
    sent: list[NotificationSent] = []
    delivered: list[NotificationDelivered] = []
    service.bus.subscribe(NotificationSent, sent.append)
    service.bus.subscribe(NotificationDelivered, delivered.append)

    created = await service.send(_request("in_app", "email"))
    await service.drain()

    assert [event.notification.id for event in sent] == [created.id]
    assert sorted(event.channel.value for event in delivered) == ["email", "in_app"]

    stored = await service.get_notification(created.id)
    assert stored.sent_at is not None
    assert stored.delivered_at is not None
