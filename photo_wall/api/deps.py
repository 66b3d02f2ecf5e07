# Shared FastAPI dependencies
from fastapi import Request

from ..services.photo_service import PhotoService
from ..services.service_container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_photo_service(request: Request) -> PhotoService:
    return get_services(request).photo_service
