"""
Settings for photo-wall-service

Each key resolves from the process environment, then AWS SSM Parameter Store,
then a built-in default. A local .env file is read at import.
"""
import os
from typing import Optional, Any
from functools import lru_cache
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv


load_dotenv()

TRUTHY = ('true', '1', 'yes', 'on')


class Config:
    """
    Lookup order for a key such as ``max-photos``:

    1. ``PHOTO_WALL_MAX_PHOTOS`` environment variable
    2. ``MAX_PHOTOS`` environment variable
    3. SSM parameter ``{prefix}/max-photos`` (unless USE_PARAMETER_STORE is off)
    4. The property's default
    """

    ENV_PREFIX = 'PHOTO_WALL_'

    def __init__(self):
        self.environment = os.environ.get('ENVIRONMENT', 'dev')
        self.parameter_store_prefix = os.environ.get(
            'PARAMETER_STORE_PREFIX',
            f'/photo-wall/{self.environment}/photo-wall-service'
        )
        self.use_parameter_store = os.environ.get('USE_PARAMETER_STORE', 'true').lower() in TRUTHY
        self._ssm_client = None

    @property
    def ssm_client(self):
        """SSM client, created on first use; None when unavailable"""
        if self._ssm_client is None and self.use_parameter_store:
            try:
                self._ssm_client = boto3.client('ssm', region_name=self.aws_region)
            except BotoCoreError:
                self._ssm_client = None
        return self._ssm_client

    @staticmethod
    def _env_name(key: str) -> str:
        return key.upper().replace('-', '_')

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Raw value for ``key`` following the lookup order above"""
        for env_key in (f"{self.ENV_PREFIX}{self._env_name(key)}", self._env_name(key)):
            value = os.environ.get(env_key)
            if value is not None:
                return value

        value = self.get_ssm_parameter(key)
        return default if value is None else value

    @lru_cache(maxsize=128)
    def get_ssm_parameter(self, key: str) -> Optional[str]:
        """Cached Parameter Store read; None if disabled, missing or unreachable"""
        if not self.use_parameter_store or not self.ssm_client:
            return None

        name = f"{self.parameter_store_prefix}/{key}"

        try:
            response = self.ssm_client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            if e.response['Error']['Code'] != 'ParameterNotFound':
                print(f"SSM lookup failed for {name}: {e}")
            return None
        except BotoCoreError as e:
            print(f"SSM unreachable while reading {name}: {e}")
            return None

        return response['Parameter']['Value']

    def get_int_parameter(self, key: str, default: int = 0) -> int:
        try:
            return int(self.get_parameter(key, default))
        except (ValueError, TypeError):
            return default

    def get_float_parameter(self, key: str, default: float = 0.0) -> float:
        try:
            return float(self.get_parameter(key, default))
        except (ValueError, TypeError):
            return default

    def get_bool_parameter(self, key: str, default: bool = False) -> bool:
        value = self.get_parameter(key, default)
        if isinstance(value, str):
            return value.strip().lower() in TRUTHY
        return bool(value)

    def get_list_parameter(self, key: str, default: list = None, separator: str = ',') -> list:
        """Comma separated value as a list of stripped, non-empty items"""
        value = self.get_parameter(key)
        if isinstance(value, str):
            return [item.strip() for item in value.split(separator) if item.strip()]
        if isinstance(value, list):
            return value
        return list(default or [])

    # Server
    @property
    def host(self) -> str:
        return self.get_parameter('host', '0.0.0.0')

    @property
    def port(self) -> int:
        return self.get_int_parameter('port', 3000)

    @property
    def admin_key(self) -> Optional[str]:
        """Shared secret for admin-only operations (unset disables them)"""
        return self.get_parameter('admin-key')

    @property
    def cors_allowed_origins(self) -> list:
        """Get CORS allowed origins"""
        if self.environment == 'dev':
            return ['*']
        return self.get_list_parameter('allowed-origins', ['*'])

    # Catalog
    @property
    def aws_region(self) -> str:
        return os.environ.get(f'{self.ENV_PREFIX}AWS_REGION') or os.environ.get('AWS_DEFAULT_REGION', 'us-east-1')

    @property
    def photo_table_name(self) -> str:
        """Get photo table name"""
        return self.get_parameter('photo-table-name', f'Photos-{self.environment}')

    @property
    def dynamodb_endpoint_url(self) -> Optional[str]:
        """DynamoDB endpoint override (DynamoDB Local)"""
        return self.get_parameter('dynamodb-endpoint-url')

    @property
    def create_table_on_startup(self) -> bool:
        return self.get_bool_parameter('create-table-on-startup', True)

    @property
    def max_photos(self) -> int:
        """Maximum number of photos kept in the catalog"""
        return self.get_int_parameter('max-photos', 10000)

    @property
    def default_list_limit(self) -> int:
        return self.get_int_parameter('default-list-limit', 800)

    @property
    def max_list_limit(self) -> int:
        return self.get_int_parameter('max-list-limit', 2000)

    @property
    def eviction_workers(self) -> int:
        return max(1, self.get_int_parameter('eviction-workers', 1))

    @property
    def eviction_recheck_seconds(self) -> float:
        """Delay before re-running eviction when the ordering index lags"""
        return self.get_float_parameter('eviction-recheck-seconds', 1.0)

    @property
    def eviction_max_rechecks(self) -> int:
        return self.get_int_parameter('eviction-max-rechecks', 5)

    @property
    def delete_visibility_seconds(self) -> float:
        return self.get_float_parameter('delete-visibility-seconds', 10.0)

    # Blob store
    @property
    def photo_bucket_name(self) -> str:
        """Get photo bucket name"""
        return self.get_parameter('photo-bucket-name', f'photo-wall-{self.environment}')

    @property
    def blob_folder(self) -> str:
        return self.get_parameter('blob-folder', 'memorial_wall')

    @property
    def s3_endpoint_url(self) -> Optional[str]:
        """S3 endpoint override (MinIO, LocalStack)"""
        return self.get_parameter('s3-endpoint-url')

    @property
    def public_base_url(self) -> Optional[str]:
        """Base URL objects are served from (CDN in front of the bucket)"""
        return self.get_parameter('public-base-url')

    @property
    def image_handler_url(self) -> Optional[str]:
        """Base URL of the image transformation endpoint used for thumbnails"""
        return self.get_parameter('image-handler-url')

    @property
    def max_image_size(self) -> int:
        """Get maximum image size in bytes"""
        return self.get_int_parameter('max-image-size', 5 * 1024 * 1024)  # 5MB

    @property
    def allowed_image_types(self) -> list:
        """Get allowed image MIME types"""
        return self.get_list_parameter('allowed-image-types', ['image/jpeg', 'image/png', 'image/webp'])

    # Live updates
    @property
    def event_buffer_size(self) -> int:
        return max(1, self.get_int_parameter('event-buffer-size', 100))

    @property
    def sse_keepalive_seconds(self) -> float:
        return self.get_float_parameter('sse-keepalive-seconds', 15.0)

    @property
    def enable_debug_logging(self) -> bool:
        """Get debug logging flag"""
        return self.get_bool_parameter('enable-debug-logging', False)


# Global configuration instance
config = Config()
