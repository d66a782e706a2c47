import asyncio
import json
import logging

import httpx
from sqlalchemy.exc import OperationalError

from database import SessionLocal
from models.notification import Notification, DeviceToken, NotificationType
from services.hub import NotificationHub, HEARTBEAT_FRAME, format_sse
from services.push import FCMClient


class FakeRequest:
    def __init__(self):
        self.disconnected = False

    async def is_disconnected(self):
        return self.disconnected


class RecordingPush:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, token, title, body, data=None):
        self.sent.append((token, title, body, data))
        if self.error is not None:
            raise self.error
        return {"success": 1}


class BrokenSession:
    def add(self, obj):
        pass

    def commit(self):
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    def rollback(self):
        pass

    def close(self):
        pass


def _frame_data(frame: str) -> dict:
    data_line = [line for line in frame.splitlines() if line.startswith("data: ")][0]
    return json.loads(data_line[len("data: "):])


def test_register_and_unregister(hub):
    first = hub.register(1)
    second = hub.register(1)
    assert hub.connection_count(1) == 2
    assert len(hub) == 1

    hub.unregister(1, first)
    hub.unregister(1, second)
    assert len(hub) == 0
    assert hub.connection_count() == 0

    # A second unregister is a no-op
    hub.unregister(1, second)
    assert len(hub) == 0


def test_broadcast_without_listeners_still_persists(hub, db, customer):
    notification_id = hub.broadcast(customer.id, NotificationType.ORDER_CREATED.value,
                                    {"order_id": 7, "order_number": "ORD-2026-ABCD1234"})

    rows = db.query(Notification).filter(Notification.user_id == customer.id).all()
    assert len(rows) == 1
    assert rows[0].id == notification_id
    assert rows[0].is_read is False
    assert rows[0].title == "Order received"
    assert "ORD-2026-ABCD1234" in rows[0].message
    assert json.loads(rows[0].data)["order_id"] == 7


def test_broadcast_reaches_every_connection_once(hub, customer, make_user):
    other = make_user()
    a = hub.register(customer.id)
    b = hub.register(customer.id)
    stranger = hub.register(other.id)

    hub.broadcast(customer.id, NotificationType.ORDER_STATUS_UPDATED.value,
                  {"order_number": "ORD-1", "status": "shipped"})

    for conn in (a, b):
        assert conn.pending() == 1
        data = _frame_data(conn.poll())
        assert data["event"] == "order_status_updated"
        assert data["message"] == "Your order ORD-1 is now shipped"
        assert data["notification_id"] is not None
        assert conn.poll() is None
    assert stranger.pending() == 0


def test_full_queue_drops_message(hub, customer, db):
    conn = hub.register(customer.id)
    for i in range(hub.queue_size + 3):
        hub.broadcast(customer.id, NotificationType.GENERAL.value, {"title": "Hi", "message": str(i)})

    assert conn.pending() == hub.queue_size
    # Dropped frames are still stored
    assert db.query(Notification).filter(Notification.user_id == customer.id).count() == hub.queue_size + 3


def test_persistence_failure_still_delivers_live(customer):
    hub = NotificationHub(lambda: BrokenSession(), queue_size=4)
    conn = hub.register(customer.id)

    notification_id = hub.broadcast(customer.id, NotificationType.WHOLESALE_APPROVED.value)

    assert notification_id is None
    data = _frame_data(conn.poll())
    assert data["event"] == "wholesale_approved"
    assert data["notification_id"] is None


def test_push_uses_latest_device(db, customer):
    db.add(DeviceToken(user_id=customer.id, token="old-token"))
    db.commit()
    newer = DeviceToken(user_id=customer.id, token="new-token")
    db.add(newer)
    db.commit()
    newer.updated_at = newer.updated_at.replace(year=newer.updated_at.year + 1)
    db.commit()

    push = RecordingPush()
    hub = NotificationHub(SessionLocal, push_sender=push)
    hub.broadcast(customer.id, NotificationType.ORDER_CREATED.value, {"order_id": 3}, order_id=None)

    assert len(push.sent) == 1
    token, title, body, data = push.sent[0]
    assert token == "new-token"
    assert title == "Order received"
    assert data["type"] == "order_created"


def test_push_failure_is_logged_not_raised(db, customer, caplog):
    db.add(DeviceToken(user_id=customer.id, token="device-1"))
    db.commit()
    push = RecordingPush(error=httpx.ConnectError("gateway down"))
    hub = NotificationHub(SessionLocal, push_sender=push)

    with caplog.at_level(logging.WARNING, logger="services.hub"):
        notification_id = hub.broadcast(customer.id, NotificationType.GENERAL.value, {"title": "T", "message": "M"})

    assert notification_id is not None
    assert any("Push to user" in r.getMessage() for r in caplog.records)


def test_malformed_gateway_reply_does_not_break_broadcast(db, customer, monkeypatch, caplog):
    db.add(DeviceToken(user_id=customer.id, token="device-1"))
    db.commit()

    def html_reply(self, url, **kwargs):
        return httpx.Response(200, text="<html>gateway</html>", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.Client, "post", html_reply)
    hub = NotificationHub(SessionLocal, push_sender=FCMClient(server_key="key", api_url="https://fcm.test/send"))
    conn = hub.register(customer.id)

    with caplog.at_level(logging.WARNING, logger="services.hub"):
        notification_id = hub.broadcast(customer.id, NotificationType.GENERAL.value, {"title": "T", "message": "M"})

    assert notification_id is not None
    assert _frame_data(conn.poll())["notification_id"] == notification_id
    assert any("Push to user" in r.getMessage() for r in caplog.records)


def test_any_sender_error_is_contained(customer):
    push = RecordingPush(error=RuntimeError("token store offline"))
    with SessionLocal() as session:
        session.add(DeviceToken(user_id=customer.id, token="device-1"))
        session.commit()
    hub = NotificationHub(SessionLocal, push_sender=push)

    assert hub.broadcast(customer.id, NotificationType.ORDER_CREATED.value, {"order_id": 1}) is not None
    assert len(push.sent) == 1


def test_no_device_means_no_push(customer):
    push = RecordingPush()
    hub = NotificationHub(SessionLocal, push_sender=push)
    hub.broadcast(customer.id, NotificationType.GENERAL.value)
    assert push.sent == []


def test_notify_admins_targets_active_admins(hub, db, make_user, customer):
    from models.users import UserRole

    admin = make_user(role=UserRole.ADMIN.value)
    boss = make_user(role=UserRole.SUPER_ADMIN.value)
    make_user(role=UserRole.ADMIN.value, active=False)

    count = hub.notify_admins(NotificationType.ADMIN_ORDER_CREATED.value,
                              {"order_number": "ORD-9", "customer_name": "Sara Ali"})

    assert count == 2
    recipients = {n.user_id for n in db.query(Notification).all()}
    assert recipients == {admin.id, boss.id}
    assert customer.id not in recipients


def test_stream_yields_connected_message_and_heartbeat(hub, customer):
    request = FakeRequest()

    async def scenario():
        gen = hub.stream(request, customer.id)
        first = await gen.__anext__()
        assert hub.connection_count(customer.id) == 1

        hub.broadcast(customer.id, NotificationType.WHOLESALE_SUBMITTED.value)
        message = await gen.__anext__()
        beat = await gen.__anext__()

        request.disconnected = True
        await gen.aclose()
        return first, message, beat

    first, message, beat = asyncio.run(scenario())

    assert first.startswith("event: connected\n")
    assert _frame_data(first)["user_id"] == customer.id
    assert _frame_data(message)["event"] == "wholesale_submitted"
    assert beat == HEARTBEAT_FRAME
    assert len(hub) == 0


def test_stream_stops_when_client_disconnects(hub, customer):
    request = FakeRequest()

    async def scenario():
        frames = []
        async for frame in hub.stream(request, customer.id):
            frames.append(frame)
            request.disconnected = True
        return frames

    frames = asyncio.run(scenario())
    assert len(frames) == 1
    assert len(hub) == 0


def test_format_sse():
    frame = format_sse("message", {"a": 1})
    assert frame == 'event: message\ndata: {"a": 1}\n\n'
