# backend/utils/uploads.py
import os
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Optional

from fastapi import HTTPException, UploadFile

from config import settings

IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
DOCUMENT_TYPES = {"image/jpeg", "image/png", "application/pdf"}

def upload_root() -> Path:
    root = Path(settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root

def _file_size(file: UploadFile) -> int:
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size

# Store an uploaded file under UPLOAD_DIR/<subdir> and return its public URL
def save_upload(file: UploadFile, allowed_types: Iterable[str], subdir: str = "") -> str:
    if file.content_type not in set(allowed_types):
        raise HTTPException(status_code=400, detail=f"Invalid file type: {file.content_type}")

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    if _file_size(file) > max_bytes:
        raise HTTPException(status_code=400, detail=f"File too large (max {settings.MAX_UPLOAD_MB} MB)")

    ext = (file.filename or "").rsplit(".", 1)[-1].lower() if "." in (file.filename or "") else "bin"
    unique_filename = f"{uuid.uuid4()}.{ext}"
    target_dir = upload_root() / subdir if subdir else upload_root()
    target_dir.mkdir(parents=True, exist_ok=True)

    try:
        with open(target_dir / unique_filename, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"File save error: {e}")
    finally:
        file.file.close()

    return "/uploads/" + (f"{subdir}/{unique_filename}" if subdir else unique_filename)

# Remove a previously stored file; unknown or foreign URLs are ignored
def delete_upload(url: Optional[str]):
    if not url or not url.startswith("/uploads/"):
        return
    path = upload_root() / url[len("/uploads/"):]
    if path.exists():
        os.remove(path)
