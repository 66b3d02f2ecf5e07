"""
Pytest configuration and fixtures for photo-wall-service tests
Provides AWS mocking with moto and common test data
"""
import io
import os
import threading
from datetime import datetime, timedelta, timezone

import boto3
import pytest
from moto import mock_aws
from PIL import Image


# Set test environment variables before the service modules read them
os.environ.update({
    'AWS_DEFAULT_REGION': 'us-east-1',
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'AWS_SECURITY_TOKEN': 'testing',
    'AWS_SESSION_TOKEN': 'testing',
    'ENVIRONMENT': 'test',
    'USE_PARAMETER_STORE': 'false',
    'PHOTO_WALL_PHOTO_TABLE_NAME': 'Photos-test',
    'PHOTO_WALL_PHOTO_BUCKET_NAME': 'photo-wall-test',
    'PHOTO_WALL_BLOB_FOLDER': 'memorial_wall',
    'PHOTO_WALL_ADMIN_KEY': 'test-admin-key',
    'PHOTO_WALL_CREATE_TABLE_ON_STARTUP': 'false',
    'PHOTO_WALL_MAX_IMAGE_SIZE': '5242880',  # 5MB
})

TEST_TABLE_NAME = 'Photos-test'
TEST_BUCKET_NAME = 'photo-wall-test'
TEST_ADMIN_KEY = 'test-admin-key'


@pytest.fixture
def aws_credentials():
    """Mocked AWS Credentials for moto"""
    os.environ.update({
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing'
    })


@pytest.fixture
def mock_aws_services(aws_credentials):
    """Setup DynamoDB and S3 with moto mocking"""
    from photo_wall.models.photo import PhotoRecord

    with mock_aws():
        # PynamoDB caches its connection on the model class
        PhotoRecord._connection = None

        create_test_tables()
        create_test_s3_buckets()

        yield {
            'dynamodb': boto3.resource('dynamodb', region_name='us-east-1'),
            's3': boto3.client('s3', region_name='us-east-1')
        }

        PhotoRecord._connection = None


@pytest.fixture
def mock_aws_empty(aws_credentials):
    """moto environment with no tables or buckets"""
    from photo_wall.models.photo import PhotoRecord

    with mock_aws():
        PhotoRecord._connection = None
        yield
        PhotoRecord._connection = None


def create_test_tables():
    """Create the photo catalog table with its ordering index"""
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

    photo_table = dynamodb.create_table(
        TableName=TEST_TABLE_NAME,
        KeySchema=[
            {'AttributeName': 'photo_id', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'photo_id', 'AttributeType': 'S'},
            {'AttributeName': 'catalog_partition', 'AttributeType': 'S'},
            {'AttributeName': 'catalog_rank', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[
            {
                'IndexName': 'catalog-order-index',
                'KeySchema': [
                    {'AttributeName': 'catalog_partition', 'KeyType': 'HASH'},
                    {'AttributeName': 'catalog_rank', 'KeyType': 'RANGE'}
                ],
                'Projection': {'ProjectionType': 'ALL'}
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )

    photo_table.wait_until_exists()


def create_test_s3_buckets():
    """Create S3 test buckets"""
    s3 = boto3.client('s3', region_name='us-east-1')
    s3.create_bucket(Bucket=TEST_BUCKET_NAME)


def list_bucket_keys(s3_client, bucket=TEST_BUCKET_NAME):
    """All object keys currently in a bucket"""
    response = s3_client.list_objects_v2(Bucket=bucket)
    return [obj['Key'] for obj in response.get('Contents', [])]


def drain_events(subscription):
    """Every event buffered for a subscription, oldest first"""
    return list(iter(subscription.poll, None))


class SteppingClock:
    """Deterministic clock: every call is one second after the previous one"""

    def __init__(self, start: datetime = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            value = self.current
            self.current = self.current + self.step
            return value


# Test data fixtures
def make_image_bytes(image_format: str = 'JPEG', size=(100, 100), color='red') -> bytes:
    """Encode a solid colour test image"""
    img = Image.new('RGB', size, color=color)
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=image_format)
    return img_bytes.getvalue()


@pytest.fixture
def sample_jpeg_bytes():
    """Small JPEG image"""
    return make_image_bytes('JPEG')


@pytest.fixture
def sample_png_bytes():
    """Small PNG image"""
    return make_image_bytes('PNG', color='blue')


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def catalog(mock_aws_services):
    from photo_wall.services.catalog import PhotoCatalog
    return PhotoCatalog()


@pytest.fixture
def blob_store(mock_aws_services):
    from photo_wall.services.blob_store import S3BlobStore
    return S3BlobStore(
        bucket_name=TEST_BUCKET_NAME,
        folder='memorial_wall',
        region='us-east-1',
        image_handler_url='https://images.example.com'
    )


@pytest.fixture
def event_bus():
    from photo_wall.services.live_updates import LiveUpdateBus
    bus = LiveUpdateBus(buffer_size=10)
    yield bus
    bus.close_all()


@pytest.fixture
def capacity_enforcer(catalog, blob_store):
    """Enforcer keeping at most two photos"""
    from photo_wall.services.capacity import CapacityEnforcer
    enforcer = CapacityEnforcer(catalog, blob_store, max_photos=2)
    yield enforcer
    enforcer.shutdown(wait_for_runs=True)


@pytest.fixture
def photo_service(catalog, blob_store, event_bus, capacity_enforcer, clock):
    from photo_wall.services.photo_service import PhotoService
    return PhotoService(
        catalog,
        blob_store,
        event_bus,
        capacity_enforcer,
        max_image_size=64 * 1024,
        clock=clock
    )


@pytest.fixture
def service_container(catalog, blob_store, event_bus, capacity_enforcer, photo_service):
    """Service container wired to the moto-backed services"""
    from photo_wall.services.service_container import ServiceContainer

    container = ServiceContainer()
    container.register_service('catalog', catalog)
    container.register_service('blob_store', blob_store)
    container.register_service('event_bus', event_bus)
    container.register_service('capacity_enforcer', capacity_enforcer)
    container.register_service('photo_service', photo_service)
    return container


@pytest.fixture
def api_client(service_container):
    """FastAPI test client over the moto-backed container"""
    from fastapi.testclient import TestClient
    from photo_wall.api.app import create_app

    with TestClient(create_app(service_container)) as client:
        yield client
