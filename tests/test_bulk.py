"""Tests for batched bulk sends and broadcasts."""

import anyio
import pytest

from app.application.use_cases.notifications import (
    BulkNotificationSender,
    NotificationValidationError,
)
from app.domain.entities import Notification, NotificationType

REQUEST = {"title": "Holiday", "message": "School closed Monday", "type": "announcement"}


@pytest.mark.anyio
async def test_bulk_send_counts_every_recipient(make_service, notification_store):
    service = make_service()

    result = await service.send_bulk(["u1", "u2", "u3"], REQUEST, batch_size=2, delay_ms=0)
    await service.drain()

    assert (result.total, result.success, result.failed, result.pending) == (3, 3, 0, 0)
    assert result.errors == []
    assert result.job_id.startswith("bulk-")
    assert sorted(n.user_id for n in notification_store.records.values()) == ["u1", "u2", "u3"]


@pytest.mark.anyio
async def test_bulk_send_runs_in_batches():
    """No more than ``batch_size`` sends are in flight at once."""

    in_flight = 0
    peak = 0

    async def send(request):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await anyio.sleep(0)
        in_flight -= 1
        return Notification(
            id=request.user_id, user_id=request.user_id, title="t", message="m", type=NotificationType.SYSTEM
        )

    sender = BulkNotificationSender(send, batch_size=2, delay_ms=0)

    result = await sender.send([f"u{i}" for i in range(5)], REQUEST)

    assert result.success == 5
    assert peak == 2


@pytest.mark.anyio
async def test_per_user_failures_are_collected():
    async def send(request):
        if request.user_id == "u2":
            raise RuntimeError("mailbox full")
        return Notification(
            id=request.user_id, user_id=request.user_id, title="t", message="m", type=NotificationType.SYSTEM
        )

    sender = BulkNotificationSender(send, batch_size=10, delay_ms=0)

    result = await sender.send(["u1", "u2", "u3"], REQUEST)

    assert (result.total, result.success, result.failed, result.pending) == (3, 2, 1, 0)
    assert [(error.user_id, error.error) for error in result.errors] == [("u2", "mailbox full")]


@pytest.mark.anyio
@pytest.mark.parametrize("batch_size, delay_ms", [(0, 0), (-1, 0), (1, -5)])
async def test_invalid_batch_settings_raise(make_service, batch_size, delay_ms):
    service = make_service()

    with pytest.raises(ValueError):
        await service.send_bulk(["u1"], REQUEST, batch_size=batch_size, delay_ms=delay_ms)


@pytest.mark.anyio
async def test_invalid_payload_raises_before_sending(make_service, notification_store):
    service = make_service()

    with pytest.raises(NotificationValidationError):
        await service.send_bulk(["u1", "u2"], {"title": "", "message": "m", "type": "system"})

    assert notification_store.records == {}


@pytest.mark.anyio
async def test_empty_recipient_list_returns_empty_result(make_service):
    service = make_service()

    result = await service.send_bulk([], REQUEST)

    assert (result.total, result.success, result.failed, result.pending) == (0, 0, 0, 0)


@pytest.mark.anyio
async def test_broadcast_targets_active_recipients_of_a_tenant(make_service, notification_store):
    service = make_service()

    result = await service.broadcast({**REQUEST, "tenantId": "t1"})
    await service.drain()

    assert result.total == 2
    assert sorted(n.user_id for n in notification_store.records.values()) == ["u1", "u2"]
    assert {n.tenant_id for n in notification_store.records.values()} == {"t1"}
