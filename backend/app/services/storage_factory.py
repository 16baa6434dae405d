import logging

from app.core.config import settings
from app.services.storage_interface import StorageInterface
from app.services.storage_providers.memory_service import MemoryStorageService
from app.services.storage_providers.s3_service import S3Service

logger = logging.getLogger(__name__)

_storage_instances = {}

def get_storage_service(provider: str = None) -> StorageInterface:
    """
    Get storage provider instance.
    If provider is not specified, uses the default from settings.
    """
    if not provider:
        provider = settings.STORAGE_PROVIDER.lower()

    if provider in _storage_instances:
        return _storage_instances[provider]

    logger.info(f"Initializing Storage Provider: {provider}")

    if provider == "s3":
        instance = S3Service()
    elif provider == "memory":
        instance = MemoryStorageService()
    else:
        logger.warning(f"Unknown storage provider '{provider}', defaulting to S3")
        instance = S3Service()

    _storage_instances[provider] = instance
    return instance
