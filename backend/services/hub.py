# backend/services/hub.py
import asyncio
import json
import logging
import queue
import threading
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.notification import Notification, DeviceToken
from models.users import User, ADMIN_ROLES
from services.catalog import describe_event

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ": ping\n\n"


def format_sse(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


# One open stream of one user. The queue is bounded and thread safe so
# broadcasts coming from worker threads never wait on a slow reader.
class Connection:
    def __init__(self, user_id: int, maxsize: int):
        self.id = uuid.uuid4().hex
        self.user_id = user_id
        self.queue: "queue.Queue[str]" = queue.Queue(maxsize=maxsize)
        self.last_activity = time.monotonic()

    def offer(self, message: str) -> bool:
        try:
            self.queue.put_nowait(message)
        except queue.Full:
            return False
        return True

    def poll(self) -> Optional[str]:
        try:
            message = self.queue.get_nowait()
        except queue.Empty:
            return None
        self.touch()
        return message

    def touch(self):
        self.last_activity = time.monotonic()

    def pending(self) -> int:
        return self.queue.qsize()


class NotificationHub:
    """Registry of live notification streams plus the broadcast pipeline.

    Every broadcast stores a Notification row, then offers the frame to each
    live connection of the recipient (dropping it for full queues), then
    optionally sends a push message. The three steps fail independently.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        push_sender=None,
        queue_size: int = 16,
        heartbeat: float = 25.0,
        poll_interval: float = 0.5,
    ):
        self.session_factory = session_factory
        self.push_sender = push_sender
        self.queue_size = queue_size
        self.heartbeat = heartbeat
        self.poll_interval = poll_interval
        self._lock = threading.Lock()
        self._connections: Dict[int, Set[Connection]] = {}

    # --- registry ---

    def register(self, user_id: int) -> Connection:
        conn = Connection(user_id, self.queue_size)
        with self._lock:
            self._connections.setdefault(user_id, set()).add(conn)
        logger.debug(f"Stream opened for user {user_id} ({conn.id})")
        return conn

    def unregister(self, user_id: int, conn: Connection):
        with self._lock:
            conns = self._connections.get(user_id)
            if not conns or conn not in conns:
                return
            conns.discard(conn)
            if not conns:
                del self._connections[user_id]
        logger.debug(f"Stream closed for user {user_id} ({conn.id})")

    def connections_for(self, user_id: int) -> List[Connection]:
        with self._lock:
            return list(self._connections.get(user_id, ()))

    def connection_count(self, user_id: Optional[int] = None) -> int:
        with self._lock:
            if user_id is not None:
                return len(self._connections.get(user_id, ()))
            return sum(len(c) for c in self._connections.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    # --- broadcast ---

    def broadcast(self, user_id: int, event_type: str, payload: Optional[dict] = None,
                  order_id: Optional[int] = None) -> Optional[int]:
        payload = payload or {}
        title, message = describe_event(event_type, payload)

        notification_id = self._persist(user_id, event_type, title, message, payload, order_id)

        frame = format_sse("message", {
            "event": event_type,
            "payload": payload,
            "notification_id": notification_id,
            "title": title,
            "message": message,
            "ts": datetime.utcnow().isoformat(),
        })
        # Offer outside the lock; a concurrent unregister only affects later broadcasts
        for conn in self.connections_for(user_id):
            if not conn.offer(frame):
                logger.debug(f"Dropped {event_type} for user {user_id} ({conn.id}): queue full")

        if self.push_sender is not None:
            self._push(user_id, title, message, event_type, order_id)

        return notification_id

    def notify_admins(self, event_type: str, payload: Optional[dict] = None,
                      order_id: Optional[int] = None) -> int:
        db = self.session_factory()
        try:
            admin_ids = [
                row.id for row in db.query(User.id)
                .filter(User.role.in_(sorted(ADMIN_ROLES)), User.is_active.is_(True))
                .all()
            ]
        except SQLAlchemyError as e:
            logger.error(f"Could not load admin users for {event_type}: {e}")
            return 0
        finally:
            db.close()

        for admin_id in admin_ids:
            self.broadcast(admin_id, event_type, payload, order_id=order_id)
        return len(admin_ids)

    def _persist(self, user_id, event_type, title, message, payload, order_id) -> Optional[int]:
        db = self.session_factory()
        try:
            notification = Notification(
                user_id=user_id,
                order_id=order_id,
                type=event_type,
                title=title,
                message=message,
                data=json.dumps(payload, default=str),
                is_read=False,
            )
            db.add(notification)
            db.commit()
            return notification.id
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store notification {event_type} for user {user_id}: {e}")
            return None
        finally:
            db.close()

    def _push(self, user_id, title, message, event_type, order_id):
        db = self.session_factory()
        try:
            device = (
                db.query(DeviceToken)
                .filter(DeviceToken.user_id == user_id)
                .order_by(DeviceToken.updated_at.desc(), DeviceToken.id.desc())
                .first()
            )
            token = device.token if device else None
        except SQLAlchemyError as e:
            logger.warning(f"Could not load device token for user {user_id}: {e}")
            return
        finally:
            db.close()

        if not token:
            return
        try:
            self.push_sender.send(token, title, message, data={"type": event_type, "order_id": order_id})
        except Exception as e:
            # Gateway errors, timeouts and malformed replies all land here
            logger.warning(f"Push to user {user_id} failed: {e}")

    # --- streaming ---

    async def stream(self, request: Request, user_id: int):
        """Server-sent events generator bound to one HTTP request."""
        conn = self.register(user_id)
        try:
            yield format_sse("connected", {"user_id": user_id, "connection_id": conn.id})
            last_beat = time.monotonic()
            while True:
                if await request.is_disconnected():
                    break
                message = conn.poll()
                if message is not None:
                    yield message
                    continue
                if time.monotonic() - last_beat >= self.heartbeat:
                    yield HEARTBEAT_FRAME
                    last_beat = time.monotonic()
                    conn.touch()
                await asyncio.sleep(self.poll_interval)
        finally:
            self.unregister(user_id, conn)


def get_hub(request: Request) -> NotificationHub:
    return request.app.state.hub
