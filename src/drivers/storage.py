import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from src.config import settings
from src.exceptions import ValidationError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

class PhotoStorage:
    """Stores driver profile photos on local disk, served under ``url_prefix``"""
    
    def __init__(self, upload_dir: Optional[str] = None, url_prefix: Optional[str] = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")
        self.photo_dir = os.path.join(self.upload_dir, "drivers")
    
    def save_driver_photo(self, driver_id: int, photo: UploadFile) -> str:
        """Validate and store an uploaded photo, returning its public URL"""
        if photo.content_type not in settings.ALLOWED_PHOTO_TYPES:
            raise ValidationError("Only image files (JPEG, PNG, GIF, WEBP) are allowed")
        
        content = photo.file.read()
        if not content:
            raise ValidationError("Uploaded photo is empty")
        if len(content) > settings.MAX_PHOTO_SIZE:
            raise ValidationError(
                f"Photo must not exceed {settings.MAX_PHOTO_SIZE // (1024 * 1024)}MB"
            )
        
        extension = EXTENSIONS.get(photo.content_type) or os.path.splitext(photo.filename or "")[1]
        filename = f"driver-{driver_id}-{uuid.uuid4().hex}{extension}"
        
        os.makedirs(self.photo_dir, exist_ok=True)
        with open(os.path.join(self.photo_dir, filename), "wb") as handle:
            handle.write(content)
        
        logger.info("Stored photo %s for driver %s", filename, driver_id)
        return f"{self.url_prefix}/drivers/{filename}"
    
    def delete(self, url: Optional[str]) -> bool:
        """Remove a stored photo; the default avatar and foreign URLs are left alone"""
        if not self.is_managed(url):
            return False
        
        path = os.path.join(self.photo_dir, os.path.basename(url))
        if not os.path.exists(path):
            return False
        
        os.remove(path)
        logger.info("Deleted photo %s", path)
        return True
    
    def is_managed(self, url: Optional[str]) -> bool:
        return bool(url) and url.startswith(f"{self.url_prefix}/drivers/")

photo_storage = PhotoStorage()
