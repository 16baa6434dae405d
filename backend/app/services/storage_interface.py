from typing import Protocol, Dict, Any

class StorageInterface(Protocol):
    """
    Abstract interface for blob storage providers (S3/R2, in-memory).
    Objects are addressed by a stable key; access goes through signed URLs.
    Methods are synchronous; async callers run them in a threadpool.
    """

    def upload_bytes(
        self,
        data_bytes: bytes,
        key: str,
        content_type: str = "application/octet-stream"
    ) -> Dict[str, Any]:
        """Upload bytes directly to storage."""
        ...

    def delete_file(self, key: str) -> None:
        """Delete object at key. Raises on backend failure."""
        ...

    def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600
    ) -> str:
        """Generate signed URL for GET access (download)."""
        ...

    def file_exists(self, key: str) -> bool:
        """Check if file exists in storage."""
        ...
