# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    DATABASE_URL: str = "sqlite:///./pharmacy_store.db"

    FRONTEND_URL: str = "http://localhost:5173"
    # Comma separated list of extra allowed origins
    CORS_ALLOW_ORIGINS: str = ""

    # Uploaded product images and wholesale documents
    UPLOAD_DIR: str = "static/uploads"
    MAX_UPLOAD_MB: int = 5

    # Checkout pricing
    TAX_RATE: float = 0.15
    SHIPPING_FLAT_FEE: float = 15.0
    FREE_SHIPPING_THRESHOLD: float = 100.0

    # Push delivery (disabled when the key is empty)
    FCM_SERVER_KEY: Optional[str] = None
    FCM_API_URL: str = "https://fcm.googleapis.com/fcm/send"

    # Live notification stream
    SSE_HEARTBEAT_SECONDS: float = 25.0
    SSE_QUEUE_SIZE: int = 16

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @property
    def cors_origins(self) -> List[str]:
        origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        for origin in self.CORS_ALLOW_ORIGINS.split(","):
            origin = origin.strip()
            if origin and origin not in origins:
                origins.append(origin)
        return origins

settings = Settings()
