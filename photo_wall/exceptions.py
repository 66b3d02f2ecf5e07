"""
Photo Wall Service Exceptions
"""


class PhotoWallError(Exception):
    """Base exception for all photo wall errors"""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses"""
        result = {
            'error': self.__class__.__name__,
            'message': self.message
        }
        if self.error_code:
            result['error_code'] = self.error_code
        if self.details:
            result['details'] = self.details
        return result


class ValidationError(PhotoWallError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str = None, value: str = None, error_code: str = 'VALIDATION_ERROR'):
        self.field = field
        self.value = value

        details = {}
        if field:
            details['field'] = field
        if value:
            details['value'] = value

        super().__init__(message, error_code, details)


class RequestTooLargeError(ValidationError):
    """Raised when an upload exceeds the size ceiling"""

    def __init__(self, message: str, max_size: int = None, actual_size: int = None):
        self.max_size = max_size
        self.actual_size = actual_size

        super().__init__(message, field='file', error_code='REQUEST_TOO_LARGE')
        if max_size:
            self.details['max_size_bytes'] = max_size
        if actual_size:
            self.details['actual_size_bytes'] = actual_size


class StorageWriteFailed(PhotoWallError):
    """Raised when the blob store rejects or cannot be reached for a write"""

    def __init__(self, message: str, bucket: str = None, key: str = None, original_error: str = None):
        self.bucket = bucket
        self.key = key
        self.original_error = original_error

        details = {}
        if bucket:
            details['bucket'] = bucket
        if key:
            details['key'] = key
        if original_error:
            details['original_error'] = original_error

        super().__init__(message, 'STORAGE_WRITE_FAILED', details)


class StorageDeleteFailed(PhotoWallError):
    """Describes a failed best-effort blob deletion; recorded, never propagated"""

    def __init__(self, message: str, bucket: str = None, key: str = None):
        self.bucket = bucket
        self.key = key

        details = {}
        if bucket:
            details['bucket'] = bucket
        if key:
            details['key'] = key

        super().__init__(message, 'STORAGE_DELETE_FAILED', details)


class CatalogError(PhotoWallError):
    """Raised when catalog (DynamoDB) operations fail"""

    def __init__(self, message: str, operation: str = None, table: str = None,
                 original_error: str = None, error_code: str = 'CATALOG_ERROR'):
        self.operation = operation
        self.table = table
        self.original_error = original_error

        details = {}
        if operation:
            details['operation'] = operation
        if table:
            details['table'] = table
        if original_error:
            details['original_error'] = original_error

        super().__init__(message, error_code, details)


class PhotoNotFoundError(CatalogError):
    """Raised when a photo id is not in the catalog"""

    def __init__(self, photo_id: str, operation: str = None):
        self.photo_id = photo_id
        super().__init__(
            f"Photo '{photo_id}' not found",
            operation=operation,
            error_code='PHOTO_NOT_FOUND'
        )
        self.details['photo_id'] = photo_id


class DuplicatePhotoError(CatalogError):
    """Raised when inserting a photo id that already exists"""

    def __init__(self, photo_id: str):
        self.photo_id = photo_id
        super().__init__(
            f"Photo with id '{photo_id}' already exists",
            operation='insert',
            error_code='DUPLICATE_PHOTO'
        )
        self.details['photo_id'] = photo_id


class CatalogWriteFailed(CatalogError):
    """Raised by the upload pipeline when the catalog insert fails"""

    def __init__(self, message: str, photo_id: str = None, original_error: str = None):
        self.photo_id = photo_id
        super().__init__(
            message,
            operation='insert',
            original_error=original_error,
            error_code='CATALOG_WRITE_FAILED'
        )
        if photo_id:
            self.details['photo_id'] = photo_id


class UnauthorizedError(PhotoWallError):
    """Raised when an admin-only operation is called without the shared secret"""

    def __init__(self, message: str = "Access denied", action: str = None):
        self.action = action

        details = {}
        if action:
            details['action'] = action

        super().__init__(message, 'UNAUTHORIZED', details)


class ConfigurationError(PhotoWallError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None):
        self.config_key = config_key

        details = {}
        if config_key:
            details['config_key'] = config_key

        super().__init__(message, 'CONFIGURATION_ERROR', details)
