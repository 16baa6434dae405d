from app.core.config import settings
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from datetime import datetime
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)

# SigV4 presigned URLs are rejected past 7 days
MAX_PRESIGNED_EXPIRY_SECONDS = 60 * 60 * 24 * 7

class S3Service:
    """
    S3 Compatible Storage Service (R2, AWS, MinIO).
    Implements StorageInterface.
    """

    def __init__(self):
        self.endpoint_url = settings.S3_ENDPOINT_URL or None
        self.access_key = settings.S3_ACCESS_KEY_ID
        self.secret_key = settings.S3_SECRET_ACCESS_KEY
        self.bucket_name = settings.S3_BUCKET_NAME
        self.region_name = settings.S3_REGION_NAME

        self.session = boto3.session.Session()
        # Sync client: URL signing is local CPU work, uploads run in a threadpool
        self.s3_client = self.session.client(
            's3',
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            region_name=self.region_name,
            config=Config(signature_version='s3v4')
        )

    def upload_bytes(self, data_bytes: bytes, key: str, content_type: str = "application/octet-stream") -> Dict[str, Any]:
        """Upload bytes."""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data_bytes,
                ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 Bytes Upload Error: {e}")
            raise
        return {
            "file_id": key,
            "size": len(data_bytes),
            "upload_timestamp": int(datetime.now().timestamp() * 1000)
        }

    def delete_file(self, key: str) -> None:
        """Delete object."""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 Delete Error: {e}")
            raise

    def generate_presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Generate GET URL. Expiry is capped at the SigV4 maximum."""
        return self.s3_client.generate_presigned_url(
            'get_object',
            Params={'Bucket': self.bucket_name, 'Key': key},
            ExpiresIn=min(expires_in, MAX_PRESIGNED_EXPIRY_SECONDS)
        )

    def file_exists(self, key: str) -> bool:
        """Check if file exists in storage."""
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError:
            return False
