"""
Service container for dependency injection
"""
from typing import Dict, Any
from ..config import Config, config as default_config
from .blob_store import S3BlobStore
from .capacity import CapacityEnforcer
from .catalog import PhotoCatalog
from .live_updates import LiveUpdateBus
from .photo_service import PhotoService


class ServiceContainer:
    """
    Simple service container for dependency injection
    Services are built lazily from configuration; tests register replacements
    """

    def __init__(self, config: Config = None):
        self.config = config or default_config
        self._services: Dict[str, Any] = {}

    def get_service(self, service_name: str):
        """
        Get service instance with lazy initialization

        Raises:
            ValueError: If service is not registered
        """
        if service_name not in self._services:
            self._services[service_name] = self._create_service(service_name)

        return self._services[service_name]

    def _create_service(self, service_name: str):
        cfg = self.config

        if service_name == 'catalog':
            return PhotoCatalog(
                max_list_limit=cfg.max_list_limit,
                delete_visibility_seconds=cfg.delete_visibility_seconds
            )
        elif service_name == 'blob_store':
            return S3BlobStore(
                bucket_name=cfg.photo_bucket_name,
                folder=cfg.blob_folder,
                region=cfg.aws_region,
                endpoint_url=cfg.s3_endpoint_url,
                public_base_url=cfg.public_base_url,
                image_handler_url=cfg.image_handler_url
            )
        elif service_name == 'event_bus':
            return LiveUpdateBus(buffer_size=cfg.event_buffer_size)
        elif service_name == 'capacity_enforcer':
            return CapacityEnforcer(
                self.catalog,
                self.blob_store,
                max_photos=cfg.max_photos,
                max_workers=cfg.eviction_workers,
                recheck_delay=cfg.eviction_recheck_seconds,
                max_rechecks=cfg.eviction_max_rechecks
            )
        elif service_name == 'photo_service':
            return PhotoService(
                self.catalog,
                self.blob_store,
                self.event_bus,
                self.capacity_enforcer,
                max_image_size=cfg.max_image_size,
                allowed_image_types=cfg.allowed_image_types,
                default_list_limit=cfg.default_list_limit
            )
        else:
            raise ValueError(f"Unknown service: {service_name}")

    def register_service(self, service_name: str, service_instance):
        self._services[service_name] = service_instance

    @property
    def catalog(self) -> PhotoCatalog:
        return self.get_service('catalog')

    @property
    def blob_store(self) -> S3BlobStore:
        return self.get_service('blob_store')

    @property
    def event_bus(self) -> LiveUpdateBus:
        return self.get_service('event_bus')

    @property
    def capacity_enforcer(self) -> CapacityEnforcer:
        return self.get_service('capacity_enforcer')

    @property
    def photo_service(self) -> PhotoService:
        return self.get_service('photo_service')

    def shutdown(self):
        """Release background workers and live subscriptions"""
        enforcer = self._services.get('capacity_enforcer')
        if enforcer is not None:
            enforcer.shutdown(wait_for_runs=True)

        bus = self._services.get('event_bus')
        if bus is not None:
            bus.close_all()

    def clear_services(self):
        """Clear all cached services (useful for testing)"""
        self._services.clear()


# Global service container instance
_service_container = ServiceContainer()


def get_container() -> ServiceContainer:
    return _service_container
