"""
Tests for the blob storage providers' signed URLs.
"""
import hashlib
import hmac
from urllib.parse import parse_qs, urlparse

from app.core.config import settings
from app.services.storage_providers.memory_service import MemoryStorageService
from app.services.storage_providers.s3_service import MAX_PRESIGNED_EXPIRY_SECONDS, S3Service


def _s3_service(monkeypatch):
    monkeypatch.setattr(settings, "S3_ENDPOINT_URL", "https://s3.example.com")
    monkeypatch.setattr(settings, "S3_ACCESS_KEY_ID", "test-access-key")
    monkeypatch.setattr(settings, "S3_SECRET_ACCESS_KEY", "test-secret")
    monkeypatch.setattr(settings, "S3_BUCKET_NAME", "invitely")
    monkeypatch.setattr(settings, "S3_REGION_NAME", "us-east-1")
    return S3Service()


def test_s3_url_with_default_ttl_is_within_sigv4_limit(monkeypatch):
    s3 = _s3_service(monkeypatch)
    url = s3.generate_presigned_url("E1/I1", expires_in=settings.SIGNED_URL_TTL_SECONDS)
    query = parse_qs(urlparse(url).query)
    assert int(query["X-Amz-Expires"][0]) == MAX_PRESIGNED_EXPIRY_SECONDS
    assert MAX_PRESIGNED_EXPIRY_SECONDS == 604800


def test_s3_short_ttl_is_kept(monkeypatch):
    s3 = _s3_service(monkeypatch)
    url = s3.generate_presigned_url("E1/I1", expires_in=3600)
    query = parse_qs(urlparse(url).query)
    assert query["X-Amz-Expires"] == ["3600"]


def test_memory_urls_are_not_signed_with_jwt_secret():
    storage = MemoryStorageService()
    storage.upload_bytes(b"img", "E1/I1", "image/png")
    query = parse_qs(urlparse(storage.generate_presigned_url("E1/I1")).query)
    expires = query["expires"][0]
    jwt_signature = hmac.new(
        settings.JWT_SECRET_KEY.encode(), f"E1/I1:{expires}".encode(), hashlib.sha256
    ).hexdigest()[:32]
    assert query["signature"][0] != jwt_signature


def test_memory_urls_use_supplied_signing_key():
    storage = MemoryStorageService(signing_key=b"gallery-key")
    storage.upload_bytes(b"img", "E1/I1", "image/png")
    query = parse_qs(urlparse(storage.generate_presigned_url("E1/I1")).query)
    expected = hmac.new(
        b"gallery-key", f"E1/I1:{query['expires'][0]}".encode(), hashlib.sha256
    ).hexdigest()[:32]
    assert query["signature"][0] == expected
