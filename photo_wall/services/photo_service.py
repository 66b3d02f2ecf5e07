"""
Photo service with upload/delete/list operations
Coordinates the blob store, the catalog, capacity enforcement and live updates
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from ..constants import ImageConstants, CatalogConstants
from ..exceptions import CatalogError, CatalogWriteFailed
from ..logger import photo_logger as logger
from ..models.photo import PhotoRecord
from ..validation_utils import generate_photo_id, validate_image_upload, parse_list_limit


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PhotoService:
    """
    Upload, deletion and listing pipelines for the photo wall
    """

    def __init__(
        self,
        catalog,
        blob_store,
        event_bus,
        capacity_enforcer,
        max_image_size: int = ImageConstants.MAX_FILE_SIZE,
        allowed_image_types: List[str] = None,
        default_list_limit: int = CatalogConstants.DEFAULT_LIST_LIMIT,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = generate_photo_id
    ):
        self.catalog = catalog
        self.blob_store = blob_store
        self.event_bus = event_bus
        self.capacity_enforcer = capacity_enforcer
        self.max_image_size = max_image_size
        self.allowed_image_types = allowed_image_types or ImageConstants.ALLOWED_TYPES
        self.default_list_limit = default_list_limit
        self.clock = clock
        self.id_factory = id_factory

    def upload_photo(self, image_bytes: bytes, content_type: str, filename: Optional[str] = None) -> Dict[str, Any]:
        """
        Complete photo upload workflow

        Args:
            image_bytes: Raw image data
            content_type: Declared MIME type
            filename: Original filename, for logging only

        Returns:
            Public photo dict {id, url, thumbnailUrl, createdAt}

        Raises:
            ValidationError: Bad input, nothing stored
            StorageWriteFailed: Blob write failed, nothing stored
            CatalogWriteFailed: Catalog insert failed, blob compensated
        """
        image_info = validate_image_upload(
            image_bytes,
            content_type,
            max_size=self.max_image_size,
            allowed_types=self.allowed_image_types
        )

        photo_id = self.id_factory()
        created_at = self.clock()

        logger.log_pipeline_step(
            "photo_upload",
            photo_id=photo_id,
            content_type=image_info['content_type'],
            file_size=image_info['file_size'],
            original_filename=filename
        )

        key = self.blob_store.build_key(photo_id, image_info['content_type'])
        stored = self.blob_store.put(key, image_bytes, image_info['content_type'])

        photo = PhotoRecord.build({
            'photo_id': photo_id,
            'external_id': stored['key'],
            'url': stored['url'],
            'thumbnail_url': self.blob_store.thumbnail_url(stored['key']),
            'created_at': created_at,
            'content_type': image_info['content_type'],
            'file_size': image_info['file_size'],
            'image_width': image_info['width'],
            'image_height': image_info['height']
        })

        try:
            self.catalog.insert(photo)
        except CatalogError as e:
            compensation = self.blob_store.delete(stored['key'])
            logger.error("Catalog insert failed, blob compensated",
                         error=e,
                         photo_id=photo_id,
                         external_id=stored['key'],
                         blob_removed=compensation['success'])
            raise CatalogWriteFailed(
                f"Failed to record photo: {e.message}",
                photo_id=photo_id,
                original_error=str(e)
            ) from e

        self.capacity_enforcer.schedule(photo)

        public_photo = photo.to_public_dict()
        self.event_bus.publish_photo_uploaded(public_photo)

        logger.log_pipeline_step("photo_upload_success", photo_id=photo_id, external_id=stored['key'])
        return public_photo

    def delete_photo(self, photo_id: str) -> Dict[str, Any]:
        """
        Delete one photo (caller must already be authorized)

        Returns:
            {'id', 'blob_cleanup'}

        Raises:
            PhotoNotFoundError: Unknown id, or removed by a concurrent delete
        """
        logger.log_pipeline_step("photo_delete", photo_id=photo_id)

        photo = self.catalog.get(photo_id)

        blob_result = self.blob_store.delete(photo.external_id)
        if not blob_result['success']:
            logger.warning("Blob delete failed, removing catalog row anyway",
                           photo_id=photo_id,
                           external_id=photo.external_id)

        self.catalog.delete_by_id(photo_id)
        self.event_bus.publish_photo_deleted(photo_id)

        logger.log_pipeline_step("photo_delete_complete",
                                     photo_id=photo_id,
                                     blob_deleted=blob_result['success'])
        return {
            'id': photo_id,
            'blob_cleanup': {
                'success': blob_result['success'],
                'key': blob_result['key']
            }
        }

    def list_photos(self, limit: Any = None) -> List[Dict[str, Any]]:
        """
        Newest photos first

        Args:
            limit: Raw limit (query string value or int); defaults and clamps server-side
        """
        parsed_limit = parse_list_limit(
            None if limit is None else str(limit),
            default=self.default_list_limit,
            ceiling=self.catalog.max_list_limit
        )
        return [photo.to_public_dict() for photo in self.catalog.list_newest(parsed_limit)]
