"""
Photo Wall Validation Utilities
"""
import hmac
import uuid
from typing import Optional, List, Dict, Any

from .constants import CatalogConstants, ImageConstants
from .exceptions import ValidationError, RequestTooLargeError, UnauthorizedError
from .processors.image import image_inspector


def generate_photo_id() -> str:
    """
    Generate unique photo ID

    Returns:
        32 character hex identifier, never reused
    """
    return uuid.uuid4().hex


def normalize_content_type(content_type: Optional[str]) -> str:
    """Strip parameters and case from a MIME type (``image/JPEG; q=1`` -> ``image/jpeg``)"""
    if not content_type:
        return ''
    return content_type.split(';', 1)[0].strip().lower()


def validate_image_upload(
    image_data: bytes,
    content_type: str,
    max_size: int = ImageConstants.MAX_FILE_SIZE,
    allowed_types: List[str] = None
) -> Dict[str, Any]:
    """
    Validate an uploaded image before it reaches storage.

    Args:
        image_data: Raw uploaded bytes
        content_type: Declared MIME type
        max_size: Size ceiling in bytes
        allowed_types: MIME allow-list

    Returns:
        Image info from the inspector plus normalized content_type and file_size

    Raises:
        ValidationError: On empty data, disallowed type, or undecodable content
        RequestTooLargeError: When the payload exceeds max_size
    """
    allowed_types = allowed_types or ImageConstants.ALLOWED_TYPES
    normalized_type = normalize_content_type(content_type)

    if not image_data:
        raise ValidationError('Uploaded file is empty', field='file')

    if normalized_type not in allowed_types:
        raise ValidationError(
            'Only images (jpeg/png/webp) are allowed',
            field='content_type',
            value=normalized_type or None
        )

    if len(image_data) > max_size:
        raise RequestTooLargeError(
            f'File too large: {len(image_data)} bytes (max: {max_size})',
            max_size=max_size,
            actual_size=len(image_data)
        )

    info = image_inspector.inspect(image_data, normalized_type)
    info['content_type'] = normalized_type
    info['file_size'] = len(image_data)
    return info


def parse_list_limit(
    raw_limit: Optional[str],
    default: int = CatalogConstants.DEFAULT_LIST_LIMIT,
    ceiling: int = CatalogConstants.MAX_LIST_LIMIT
) -> int:
    """
    Parse the ``limit`` query parameter and clamp it to [1, ceiling].

    Raises:
        ValidationError: If the value is not an integer
    """
    if raw_limit is None or str(raw_limit).strip() == '':
        return clamp_limit(default, ceiling)

    try:
        limit = int(str(raw_limit).strip())
    except ValueError:
        raise ValidationError('limit must be an integer', field='limit', value=str(raw_limit))

    return clamp_limit(limit, ceiling)


def clamp_limit(limit: int, ceiling: int = CatalogConstants.MAX_LIST_LIMIT) -> int:
    """Clamp a row limit to [1, ceiling]"""
    return max(1, min(int(limit), ceiling))


def verify_admin_key(provided: Optional[str], expected: Optional[str]) -> None:
    """
    Check the shared admin secret in constant time.

    Raises:
        UnauthorizedError: If no secret is configured, none was provided, or they differ
    """
    if not expected or not provided:
        raise UnauthorizedError('Forbidden (Admin only)', action='delete_photo')

    if not hmac.compare_digest(provided.encode('utf-8'), expected.encode('utf-8')):
        raise UnauthorizedError('Forbidden (Admin only)', action='delete_photo')
