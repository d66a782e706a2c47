# backend/services/push.py
import httpx
import logging
from typing import Optional
from config import settings

logger = logging.getLogger(__name__)

class FCMClient:
    """Sends push notifications through the FCM legacy HTTP endpoint."""

    def __init__(self, server_key: Optional[str] = None, api_url: Optional[str] = None, timeout: float = 10.0):
        self.server_key = server_key if server_key is not None else settings.FCM_SERVER_KEY
        self.api_url = api_url or settings.FCM_API_URL
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.server_key)

    def send(self, token: str, title: str, body: str, data: Optional[dict] = None) -> dict:
        message = {
            "to": token,
            "notification": {"title": title, "body": body},
        }
        if data:
            # FCM data values must be strings
            message["data"] = {k: str(v) for k, v in data.items() if v is not None}

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"key={self.server_key}",
        }
        with httpx.Client(timeout=self.timeout) as client:
            try:
                response = client.post(self.api_url, json=message, headers=headers)
                response.raise_for_status()
                return response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.warning(f"FCM send error: {e}")
                raise


def build_push_sender() -> Optional[FCMClient]:
    # No server key configured means push delivery is switched off
    client = FCMClient()
    return client if client.enabled else None
