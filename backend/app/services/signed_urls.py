"""
Signed URL refresher.

Gallery documents store only the stable blob path; every read projects a
fresh time-boxed URL on top. Nothing here writes to the document store.
"""
import asyncio
import logging
from typing import List

from starlette.concurrency import run_in_threadpool

from app.schemas.gallery import Image
from app.services.storage_interface import StorageInterface

logger = logging.getLogger(__name__)


def issue_signed_url(storage: StorageInterface, file_name: str, ttl: int) -> str:
    """Signed GET URL for `file_name`, or "" when the object cannot be signed."""
    try:
        return storage.generate_presigned_url(file_name, expires_in=ttl) or ""
    except Exception as e:
        logger.warning(f"Could not sign URL for {file_name}: {e}")
        return ""


async def with_signed_url(storage: StorageInterface, image: Image, ttl: int) -> Image:
    url = await run_in_threadpool(issue_signed_url, storage, image.file_name, ttl)
    return image.model_copy(update={"url": url})


async def with_signed_urls(storage: StorageInterface, images: List[Image], ttl: int) -> List[Image]:
    return list(await asyncio.gather(*(with_signed_url(storage, image, ttl) for image in images)))
