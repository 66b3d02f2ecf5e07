"""
Image inspection utilities using Pillow
Confirms uploaded bytes are a decodable image of the declared type
"""
import io
import warnings
from typing import Dict, Any, List
from PIL import Image, UnidentifiedImageError
from ..constants import ImageConstants
from ..exceptions import ValidationError
from ..logger import logger


class ImageInspector:
    """
    Reads image headers with Pillow without decoding or transforming pixels
    """

    def __init__(self, allowed_types: List[str] = None):
        self.allowed_types = allowed_types or ImageConstants.ALLOWED_TYPES

    def inspect(self, image_data: bytes, content_type: str) -> Dict[str, Any]:
        """
        Identify and verify image data

        Args:
            image_data: Raw image bytes
            content_type: Declared MIME type of the upload

        Returns:
            {'format', 'width', 'height'}

        Raises:
            ValidationError: If the data is not an image of the declared type
        """
        expected_format = ImageConstants.PIL_FORMATS.get(content_type)

        try:
            with warnings.catch_warnings():
                warnings.simplefilter('error', Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(image_data)) as image:
                    image_format = image.format
                    width, height = image.size
                    image.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
            raise ValidationError(f"Invalid image data: {str(e)}", field='file')
        except (OSError, SyntaxError, ValueError) as e:
            raise ValidationError(f"Corrupted image data: {str(e)}", field='file')

        if expected_format and image_format != expected_format:
            logger.warning("Image content does not match declared type",
                           declared_type=content_type,
                           detected_format=image_format)
            raise ValidationError(
                f"File content is {image_format}, expected {expected_format}",
                field='content_type',
                value=content_type
            )

        return {
            'format': image_format,
            'width': width,
            'height': height
        }


# Global image inspector instance
image_inspector = ImageInspector()
