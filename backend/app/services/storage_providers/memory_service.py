"""
In-process blob store for local development and tests.
"""
import hashlib
import hmac
import secrets
import threading
import time
from typing import Any, Dict


class MemoryStorageService:
    """
    Implements StorageInterface with a dict.
    Signed URLs use a memory:// scheme and an HMAC over key and expiry,
    keyed by a per-instance secret unless one is supplied.
    """

    def __init__(self, bucket_name: str = "invitely", signing_key: bytes = None):
        self.bucket_name = bucket_name
        self.signing_key = signing_key or secrets.token_bytes(32)
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self._lock = threading.Lock()

    def upload_bytes(self, data_bytes: bytes, key: str, content_type: str = "application/octet-stream") -> Dict[str, Any]:
        with self._lock:
            self.objects[key] = bytes(data_bytes)
            self.content_types[key] = content_type
        return {
            "file_id": key,
            "size": len(data_bytes),
            "upload_timestamp": int(time.time() * 1000)
        }

    def delete_file(self, key: str) -> None:
        with self._lock:
            self.objects.pop(key, None)
            self.content_types.pop(key, None)

    def generate_presigned_url(self, key: str, expires_in: int = 3600) -> str:
        if not self.file_exists(key):
            raise KeyError(key)
        expires = int(time.time()) + expires_in
        signature = hmac.new(
            self.signing_key,
            f"{key}:{expires}".encode(),
            hashlib.sha256
        ).hexdigest()[:32]
        return f"memory://{self.bucket_name}/{key}?expires={expires}&signature={signature}"

    def file_exists(self, key: str) -> bool:
        with self._lock:
            return key in self.objects
