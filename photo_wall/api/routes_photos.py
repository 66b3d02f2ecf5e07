# Photo listing, upload and admin deletion routes
from typing import Optional

from fastapi import APIRouter, Depends, File, Header, Query, UploadFile
from fastapi.responses import JSONResponse

from ..constants import HTTPConstants, ErrorMessages, SuccessMessages
from ..error_handler import error_handler
from ..exceptions import (
    PhotoWallError, ValidationError, CatalogError, PhotoNotFoundError, UnauthorizedError
)
from ..logger import photo_logger as logger
from ..services.photo_service import PhotoService
from ..services.service_container import ServiceContainer
from ..validation_utils import verify_admin_key
from .deps import get_photo_service, get_services

router = APIRouter(tags=["photos"])


def _error_response(status_code: int, message: str, error: Exception = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_handler.create_error_body(message, error))


@router.get("/photos")
def list_photos(
    limit: Optional[str] = Query(None),
    photo_service: PhotoService = Depends(get_photo_service),
):
    """
    Latest photos for the wall, newest first
    """
    try:
        return photo_service.list_photos(limit)
    except ValidationError as e:
        return _error_response(HTTPConstants.BAD_REQUEST, ErrorMessages.INVALID_LIMIT, e)
    except CatalogError as e:
        return _error_response(HTTPConstants.INTERNAL_SERVER_ERROR, ErrorMessages.DB_ERROR, e)


@router.post("/upload")
def upload_photo(
    file: Optional[UploadFile] = File(None),
    photo_service: PhotoService = Depends(get_photo_service),
):
    """
    Store one image and announce it to live viewers
    """
    if file is None:
        return JSONResponse(status_code=HTTPConstants.BAD_REQUEST, content={'message': ErrorMessages.NO_FILE})

    # One byte past the ceiling is enough to reject oversize uploads
    image_bytes = file.file.read(photo_service.max_image_size + 1)

    try:
        photo = photo_service.upload_photo(image_bytes, file.content_type, filename=file.filename)
    except ValidationError as e:
        return _error_response(HTTPConstants.BAD_REQUEST, ErrorMessages.INVALID_UPLOAD, e)
    except PhotoWallError as e:
        return _error_response(HTTPConstants.INTERNAL_SERVER_ERROR, ErrorMessages.UPLOAD_FAILED, e)

    return {'message': SuccessMessages.UPLOADED, 'photo': photo}


@router.delete("/photos/{photo_id}")
def delete_photo(
    photo_id: str,
    x_admin_key: Optional[str] = Header(None, alias=HTTPConstants.ADMIN_KEY_HEADER),
    services: ServiceContainer = Depends(get_services),
):
    """
    Admin only: requires the x-admin-key header
    """
    try:
        verify_admin_key(x_admin_key, services.config.admin_key)
    except UnauthorizedError:
        logger.warning("Rejected delete without valid admin key", photo_id=photo_id)
        return JSONResponse(status_code=HTTPConstants.FORBIDDEN, content={'message': ErrorMessages.FORBIDDEN})

    try:
        services.photo_service.delete_photo(photo_id)
    except PhotoNotFoundError:
        return JSONResponse(status_code=HTTPConstants.NOT_FOUND, content={'message': ErrorMessages.PHOTO_NOT_FOUND})
    except CatalogError as e:
        return _error_response(HTTPConstants.INTERNAL_SERVER_ERROR, ErrorMessages.DB_ERROR, e)

    return {'message': SuccessMessages.DELETED, 'id': photo_id}
