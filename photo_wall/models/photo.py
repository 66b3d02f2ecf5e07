"""
PynamoDB model for photo catalog entries
"""
from datetime import datetime, timezone
from typing import Dict, Any
from pynamodb.models import Model
from pynamodb.attributes import UnicodeAttribute, UTCDateTimeAttribute, NumberAttribute
from pynamodb.indexes import GlobalSecondaryIndex, AllProjection
from ..config import config
from ..constants import CatalogConstants


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC string with microseconds and a ``Z`` suffix"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(CatalogConstants.RANK_TIMESTAMP_FORMAT)


def build_catalog_rank(created_at: datetime, photo_id: str) -> str:
    """
    Sort key giving the total order (created_at, photo_id).

    The timestamp prefix is fixed width so lexical order equals time order.
    """
    return f"{format_timestamp(created_at)}{CatalogConstants.RANK_SEPARATOR}{photo_id}"


class CatalogOrderIndex(GlobalSecondaryIndex):
    """GSI ordering every photo by (created_at, photo_id)"""
    class Meta:
        index_name = CatalogConstants.ORDER_INDEX_NAME
        projection = AllProjection()

    catalog_partition = UnicodeAttribute(hash_key=True)
    catalog_rank = UnicodeAttribute(range_key=True)


class PhotoRecord(Model):
    """
    Photo metadata row. Immutable once written.
    """

    class Meta:
        table_name = config.photo_table_name
        region = config.aws_region
        host = config.dynamodb_endpoint_url
        billing_mode = 'PAY_PER_REQUEST'

    # Primary key
    photo_id = UnicodeAttribute(hash_key=True)

    # Blob store handle and derived URLs
    external_id = UnicodeAttribute()
    url = UnicodeAttribute()
    thumbnail_url = UnicodeAttribute()

    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    # Ordering index keys
    catalog_partition = UnicodeAttribute(default=CatalogConstants.PARTITION)
    catalog_rank = UnicodeAttribute()

    # Descriptive metadata
    content_type = UnicodeAttribute(null=True)
    file_size = NumberAttribute(null=True)
    image_width = NumberAttribute(null=True)
    image_height = NumberAttribute(null=True)

    catalog_order_index = CatalogOrderIndex()

    @classmethod
    def build(cls, photo_data: Dict[str, Any]) -> 'PhotoRecord':
        """
        Build an unsaved record from a dict of photo fields

        Args:
            photo_data: photo_id, external_id, url, thumbnail_url, created_at
                and optional content_type, file_size, image_width, image_height

        Returns:
            PhotoRecord with its ordering keys filled in

        Raises:
            ValueError: If required fields are missing
        """
        required_fields = ['photo_id', 'external_id', 'url', 'thumbnail_url']
        missing_fields = [field for field in required_fields if not photo_data.get(field)]

        if missing_fields:
            raise ValueError(f"Missing required fields: {missing_fields}")

        created_at = photo_data.get('created_at') or datetime.now(timezone.utc)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return cls(
            photo_data['photo_id'],
            external_id=photo_data['external_id'],
            url=photo_data['url'],
            thumbnail_url=photo_data['thumbnail_url'],
            created_at=created_at,
            catalog_partition=CatalogConstants.PARTITION,
            catalog_rank=build_catalog_rank(created_at, photo_data['photo_id']),
            content_type=photo_data.get('content_type'),
            file_size=photo_data.get('file_size'),
            image_width=photo_data.get('image_width'),
            image_height=photo_data.get('image_height')
        )

    def to_public_dict(self) -> Dict[str, Any]:
        """Representation returned by the API and carried in live events"""
        return {
            'id': self.photo_id,
            'url': self.url,
            'thumbnailUrl': self.thumbnail_url,
            'createdAt': format_timestamp(self.created_at) if self.created_at else None
        }
