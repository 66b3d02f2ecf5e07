"""
S3 blob store for uploaded images
Durable writes, best-effort deletes, and URL derivation
"""
from typing import Dict, Any, Optional
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from ..constants import ImageConstants
from ..error_handler import error_handler
from ..exceptions import StorageWriteFailed, StorageDeleteFailed, ConfigurationError
from ..logger import blob_logger as logger


class S3BlobStore:
    """
    Binary storage for photos in a single S3 bucket

    ``delete`` never raises: it returns a result dict the caller may ignore.
    """

    def __init__(
        self,
        bucket_name: str,
        folder: str = '',
        region: str = 'us-east-1',
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        image_handler_url: Optional[str] = None,
        s3_client=None
    ):
        if not bucket_name:
            raise ConfigurationError("Photo bucket name is not configured", config_key="photo-bucket-name")

        self.bucket_name = bucket_name
        self.folder = folder.strip('/')
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = (public_base_url or f"https://{bucket_name}.s3.amazonaws.com").rstrip('/')
        self.image_handler_url = image_handler_url.rstrip('/') if image_handler_url else None
        self._s3_client = s3_client

    @property
    def s3_client(self):
        """Lazy initialization of S3 client"""
        if self._s3_client is None:
            self._s3_client = boto3.client('s3', region_name=self.region, endpoint_url=self.endpoint_url)
        return self._s3_client

    def build_key(self, photo_id: str, content_type: str) -> str:
        """
        Object key derived from the photo id: ``{folder}/{photo_id}.{ext}``
        """
        extension = ImageConstants.FILE_EXTENSIONS.get(content_type, 'bin')
        filename = f"{photo_id}.{extension}"
        return f"{self.folder}/{filename}" if self.folder else filename

    def put(self, key: str, data: bytes, content_type: str) -> Dict[str, Any]:
        """
        Upload data to S3

        Returns:
            {'key', 'url', 'etag'}

        Raises:
            StorageWriteFailed: If the object could not be written
        """
        try:
            response = self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type
            )

        except (ClientError, BotoCoreError) as e:
            error_response = error_handler.handle_s3_error(e, 'put', self.bucket_name, key)
            logger.log_blob_operation(self.bucket_name, 'put', key, False, error=str(e))
            raise StorageWriteFailed(
                error_response['error_message'],
                bucket=self.bucket_name,
                key=key,
                original_error=str(e)
            ) from e

        logger.log_blob_operation(self.bucket_name, 'put', key, True, size=len(data))

        return {
            'key': key,
            'url': self.public_url(key),
            'etag': response.get('ETag')
        }

    def delete(self, key: str) -> Dict[str, Any]:
        """
        Best-effort delete of one object

        Returns:
            {'success': bool, 'key': str, 'error': Optional[StorageDeleteFailed]}
        """
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)

        except (ClientError, BotoCoreError) as e:
            error_response = error_handler.handle_s3_error(e, 'delete', self.bucket_name, key)
            logger.log_blob_operation(self.bucket_name, 'delete', key, False, error=str(e))
            return {
                'success': False,
                'key': key,
                'error': StorageDeleteFailed(
                    error_response['error_message'],
                    bucket=self.bucket_name,
                    key=key
                )
            }

        logger.log_blob_operation(self.bucket_name, 'delete', key, True)
        return {'success': True, 'key': key, 'error': None}

    def public_url(self, key: str) -> str:
        """Canonical retrieval URL for an object"""
        return f"{self.public_base_url}/{key}"

    def thumbnail_url(self, key: str) -> str:
        """
        Thumbnail URL served by the image transformation endpoint

        Falls back to the canonical URL when no endpoint is configured.
        """
        if not self.image_handler_url:
            return self.public_url(key)

        width, height = ImageConstants.THUMBNAIL_SIZE
        return (
            f"{self.image_handler_url}/{width}x{height}/"
            f"filters:quality({ImageConstants.THUMBNAIL_QUALITY})/{key}"
        )
