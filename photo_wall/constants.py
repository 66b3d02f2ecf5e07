"""
Photo Wall Service Constants
"""


class HTTPConstants:
    """HTTP status codes and headers"""

    # Status codes
    OK = 200
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    # Headers
    ADMIN_KEY_HEADER = 'x-admin-key'

    # MIME types
    JSON = 'application/json'
    EVENT_STREAM = 'text/event-stream'


class ImageConstants:
    """Image upload constants"""

    JPEG = 'image/jpeg'
    PNG = 'image/png'
    WEBP = 'image/webp'

    ALLOWED_TYPES = [JPEG, PNG, WEBP]

    # Pillow format name for each accepted MIME type
    PIL_FORMATS = {
        JPEG: 'JPEG',
        PNG: 'PNG',
        WEBP: 'WEBP',
    }

    FILE_EXTENSIONS = {
        JPEG: 'jpg',
        PNG: 'png',
        WEBP: 'webp',
    }

    MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB

    # Thumbnail transformation (fill crop)
    THUMBNAIL_SIZE = (250, 250)
    THUMBNAIL_QUALITY = 80


class CatalogConstants:
    """Catalog ordering and paging constants"""

    PARTITION = 'photos'
    ORDER_INDEX_NAME = 'catalog-order-index'
    RANK_SEPARATOR = '#'
    RANK_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'

    DEFAULT_LIST_LIMIT = 800
    MAX_LIST_LIMIT = 2000

    # Seconds a deleted row stays hidden from index reads
    DELETE_VISIBILITY_SECONDS = 10.0


class EventConstants:
    """Live update event types"""

    HELLO = 'hello'
    PHOTO_UPLOADED = 'photo_uploaded'
    PHOTO_DELETED = 'photo_deleted'

    KEEPALIVE_FRAME = ': keep-alive\n\n'


class ErrorMessages:
    """User-facing error messages"""

    NO_FILE = 'No file uploaded'
    UPLOAD_FAILED = 'Upload failed'
    INVALID_UPLOAD = 'Invalid upload'
    DB_ERROR = 'DB error'
    FORBIDDEN = 'Forbidden (Admin only)'
    PHOTO_NOT_FOUND = 'Photo not found'
    INVALID_LIMIT = 'Invalid limit'


class SuccessMessages:
    """User-facing success messages"""

    UPLOADED = 'Uploaded successfully'
    DELETED = 'Photo deleted successfully'
    RUNNING = 'Backend is running'
