"""
Photo catalog backed by DynamoDB
Ordered metadata store with conditional writes and newest-first range queries
"""
import threading
import time
from itertools import islice
from typing import Dict, List, Set, Type
from pynamodb.exceptions import DoesNotExist, PynamoDBException
from botocore.exceptions import BotoCoreError, ClientError
from ..constants import CatalogConstants
from ..error_handler import error_handler, catalog_error_from
from ..exceptions import PhotoNotFoundError, DuplicatePhotoError
from ..logger import catalog_logger as logger
from ..models.photo import PhotoRecord
from ..validation_utils import clamp_limit


DYNAMODB_ERRORS = (PynamoDBException, ClientError, BotoCoreError)


class PhotoCatalog:
    """
    Catalog of PhotoRecord rows ordered by (created_at DESC, photo_id DESC)

    Writes are per-item atomic through condition expressions; no cross-row
    isolation is provided.

    Ordered reads go through a global secondary index, which DynamoDB only
    reads eventually consistently. Rows deleted through this catalog are
    hidden from those reads for ``delete_visibility_seconds`` so a delete is
    not undone by index lag.
    """

    def __init__(self, model: Type[PhotoRecord] = PhotoRecord, max_list_limit: int = CatalogConstants.MAX_LIST_LIMIT,
                 delete_visibility_seconds: float = CatalogConstants.DELETE_VISIBILITY_SECONDS):
        self.model = model
        self.max_list_limit = max_list_limit
        self.delete_visibility_seconds = delete_visibility_seconds
        self._recent_deletes: Dict[str, float] = {}
        self._deletes_lock = threading.Lock()

    @property
    def table_name(self) -> str:
        return self.model.Meta.table_name

    def ensure_table(self) -> bool:
        """
        Create the table and its ordering index if missing

        Returns:
            True if the table was created
        """
        try:
            if self.model.exists():
                return False

            self.model.create_table(billing_mode='PAY_PER_REQUEST', wait=True)
            logger.log_catalog_operation(self.table_name, 'create_table', success=True)
            return True

        except DYNAMODB_ERRORS as e:
            raise catalog_error_from(e, 'create_table', self.table_name)

    def insert(self, photo: PhotoRecord) -> PhotoRecord:
        """
        Persist a new photo row

        Raises:
            DuplicatePhotoError: If the photo_id is already present
            CatalogError: On any other storage failure
        """
        try:
            photo.save(condition=self.model.photo_id.does_not_exist())

        except DYNAMODB_ERRORS as e:
            if error_handler.is_conditional_check_failure(e):
                logger.log_catalog_operation(
                    self.table_name, 'insert', success=False,
                    photo_id=photo.photo_id, error='duplicate photo_id'
                )
                raise DuplicatePhotoError(photo.photo_id)

            raise catalog_error_from(e, 'insert', self.table_name)

        logger.log_catalog_operation(
            self.table_name, 'insert', success=True,
            photo_id=photo.photo_id,
            catalog_rank=photo.catalog_rank
        )
        return photo

    def get(self, photo_id: str) -> PhotoRecord:
        """
        Get photo by ID

        Raises:
            PhotoNotFoundError: If the row does not exist
        """
        try:
            return self.model.get(photo_id, consistent_read=True)

        except DoesNotExist:
            raise PhotoNotFoundError(photo_id, operation='get')

        except DYNAMODB_ERRORS as e:
            raise catalog_error_from(e, 'get', self.table_name)

    def delete_by_id(self, photo_id: str) -> None:
        """
        Remove a photo row

        Raises:
            PhotoNotFoundError: If the row is already absent
        """
        try:
            self.model(photo_id).delete(condition=self.model.photo_id.exists())

        except DYNAMODB_ERRORS as e:
            if error_handler.is_conditional_check_failure(e):
                logger.log_catalog_operation(
                    self.table_name, 'delete', success=False,
                    photo_id=photo_id, error='not found'
                )
                raise PhotoNotFoundError(photo_id, operation='delete')

            raise catalog_error_from(e, 'delete', self.table_name)

        with self._deletes_lock:
            self._recent_deletes[photo_id] = time.monotonic() + self.delete_visibility_seconds

        logger.log_catalog_operation(self.table_name, 'delete', success=True, photo_id=photo_id)

    def list_newest(self, limit: int) -> List[PhotoRecord]:
        """
        Newest rows first, at most ``limit`` (clamped to the hard ceiling)
        """
        limit = clamp_limit(limit, self.max_list_limit)
        hidden = self._recently_deleted()

        try:
            rows = self._ordered_query(limit=limit + len(hidden))
            photos = list(islice((photo for photo in rows if photo.photo_id not in hidden), limit))

        except DYNAMODB_ERRORS as e:
            raise catalog_error_from(e, 'list_newest', self.table_name)

        logger.debug("Listed newest photos", limit=limit, count=len(photos))
        return photos

    def list_beyond(self, offset: int) -> List[PhotoRecord]:
        """
        All rows ranked after the newest ``offset``, in the same order as list_newest
        """
        offset = max(0, int(offset))
        hidden = self._recently_deleted()

        try:
            rows = (photo for photo in self._ordered_query() if photo.photo_id not in hidden)
            photos = list(islice(rows, offset, None))

        except DYNAMODB_ERRORS as e:
            raise catalog_error_from(e, 'list_beyond', self.table_name)

        logger.log_catalog_operation(
            self.table_name, 'list_beyond', success=True,
            offset=offset, count=len(photos)
        )
        return photos

    def count(self) -> int:
        """Number of rows in the ordering index"""
        try:
            return self.model.catalog_order_index.count(CatalogConstants.PARTITION)

        except DYNAMODB_ERRORS as e:
            raise catalog_error_from(e, 'count', self.table_name)

    def _recently_deleted(self) -> Set[str]:
        now = time.monotonic()
        with self._deletes_lock:
            expired = [photo_id for photo_id, until in self._recent_deletes.items() if until <= now]
            for photo_id in expired:
                del self._recent_deletes[photo_id]
            return set(self._recent_deletes)

    def _ordered_query(self, limit: int = None):
        return self.model.catalog_order_index.query(
            CatalogConstants.PARTITION,
            scan_index_forward=False,
            limit=limit
        )
