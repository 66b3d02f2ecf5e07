"""
Unit tests for the photo upload, delete and list pipelines
"""
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from conftest import SteppingClock, drain_events, list_bucket_keys, make_image_bytes
from photo_wall.exceptions import (
    CatalogError, CatalogWriteFailed, PhotoNotFoundError, RequestTooLargeError,
    StorageWriteFailed, ValidationError
)
from photo_wall.services.capacity import CapacityEnforcer
from photo_wall.services.live_updates import hello_event, photo_deleted_event
from photo_wall.services.photo_service import PhotoService


class TestUploadPhoto:
    """Upload pipeline against moto"""

    def test_upload_stores_blob_row_and_event(self, photo_service, event_bus, catalog,
                                              mock_aws_services, sample_jpeg_bytes):
        subscription = event_bus.subscribe()

        photo = photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg', filename='a.jpg')

        assert set(photo) == {'id', 'url', 'thumbnailUrl', 'createdAt'}
        assert photo['createdAt'] == '2024-05-01T12:00:00.000000Z'
        assert photo['url'].endswith(f"memorial_wall/{photo['id']}.jpg")
        assert photo['thumbnailUrl'] == (
            f"https://images.example.com/250x250/filters:quality(80)/memorial_wall/{photo['id']}.jpg"
        )

        stored = catalog.get(photo['id'])
        assert stored.external_id == f"memorial_wall/{photo['id']}.jpg"
        assert stored.content_type == 'image/jpeg'
        assert int(stored.image_width) == 100
        assert list_bucket_keys(mock_aws_services['s3']) == [stored.external_id]

        assert drain_events(subscription) == [hello_event(), {'type': 'photo_uploaded', 'photo': photo}]

    def test_upload_png(self, photo_service, sample_png_bytes):
        photo = photo_service.upload_photo(sample_png_bytes, 'image/png')
        assert photo['url'].endswith('.png')

    def test_uploaded_photo_listed_first(self, photo_service, sample_jpeg_bytes, sample_png_bytes):
        first = photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg')
        second = photo_service.upload_photo(sample_png_bytes, 'image/png')

        photos = photo_service.list_photos()

        assert [photo['id'] for photo in photos] == [second['id'], first['id']]

    def test_oversized_upload_rejected(self, photo_service, catalog, event_bus, mock_aws_services):
        subscription = event_bus.subscribe()
        oversized = b'\xff' * (64 * 1024 + 1)

        with pytest.raises(RequestTooLargeError):
            photo_service.upload_photo(oversized, 'image/jpeg')

        assert catalog.count() == 0
        assert list_bucket_keys(mock_aws_services['s3']) == []
        assert drain_events(subscription) == [hello_event()]

    def test_wrong_type_rejected(self, photo_service, catalog):
        with pytest.raises(ValidationError):
            photo_service.upload_photo(b'GIF89a', 'image/gif')

        assert catalog.count() == 0

    def test_content_not_matching_type_rejected(self, photo_service, sample_png_bytes):
        with pytest.raises(ValidationError):
            photo_service.upload_photo(sample_png_bytes, 'image/jpeg')

    def test_capacity_enforced_after_upload(self, photo_service, capacity_enforcer, catalog,
                                            mock_aws_services, sample_jpeg_bytes):
        ids = [photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg')['id'] for _ in range(3)]

        assert capacity_enforcer.drain(timeout=10) is True

        # max_photos=2: the oldest upload is evicted
        assert [photo['id'] for photo in photo_service.list_photos()] == [ids[2], ids[1]]
        assert sorted(list_bucket_keys(mock_aws_services['s3'])) == sorted(
            f'memorial_wall/{photo_id}.jpg' for photo_id in ids[1:]
        )

    def test_concurrent_uploads_keep_newest(self, catalog, blob_store, event_bus,
                                            mock_aws_services, sample_jpeg_bytes):
        enforcer = CapacityEnforcer(catalog, blob_store, max_photos=3, max_workers=2)
        service = PhotoService(
            catalog,
            blob_store,
            event_bus,
            enforcer,
            max_image_size=64 * 1024,
            clock=SteppingClock()
        )

        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                photos = list(pool.map(lambda _: service.upload_photo(sample_jpeg_bytes, 'image/jpeg'), range(8)))
            assert enforcer.drain(timeout=30) is True
        finally:
            enforcer.shutdown()

        newest = sorted(photos, key=lambda photo: (photo['createdAt'], photo['id']), reverse=True)[:3]
        expected_ids = [photo['id'] for photo in newest]

        assert [photo['id'] for photo in service.list_photos()] == expected_ids
        assert catalog.count() == 3
        assert sorted(list_bucket_keys(mock_aws_services['s3'])) == sorted(
            f'memorial_wall/{photo_id}.jpg' for photo_id in expected_ids
        )


class TestUploadFailures:
    """Storage and catalog failures during upload"""

    def make_service(self, catalog, blob_store, event_bus, enforcer=None):
        return PhotoService(
            catalog,
            blob_store,
            event_bus,
            enforcer or MagicMock(),
            clock=SteppingClock()
        )

    def test_storage_failure_leaves_nothing_behind(self, event_bus, sample_jpeg_bytes):
        catalog = MagicMock()
        blob_store = MagicMock()
        blob_store.build_key.return_value = 'memorial_wall/x.jpg'
        blob_store.put.side_effect = StorageWriteFailed('S3 down', bucket='b', key='memorial_wall/x.jpg')
        enforcer = MagicMock()
        service = self.make_service(catalog, blob_store, event_bus, enforcer)
        subscription = event_bus.subscribe()

        with pytest.raises(StorageWriteFailed):
            service.upload_photo(sample_jpeg_bytes, 'image/jpeg')

        catalog.insert.assert_not_called()
        enforcer.schedule.assert_not_called()
        assert drain_events(subscription) == [hello_event()]

    def test_catalog_failure_compensates_blob(self, blob_store, event_bus, mock_aws_services, sample_jpeg_bytes):
        catalog = MagicMock()
        catalog.insert.side_effect = CatalogError('table unavailable', operation='insert')
        enforcer = MagicMock()
        service = self.make_service(catalog, blob_store, event_bus, enforcer)
        subscription = event_bus.subscribe()

        with pytest.raises(CatalogWriteFailed) as exc_info:
            service.upload_photo(sample_jpeg_bytes, 'image/jpeg')

        assert exc_info.value.photo_id
        assert list_bucket_keys(mock_aws_services['s3']) == []
        enforcer.schedule.assert_not_called()
        assert drain_events(subscription) == [hello_event()]

    def test_catalog_failure_with_failed_compensation_still_raises(self, event_bus, sample_jpeg_bytes):
        catalog = MagicMock()
        catalog.insert.side_effect = CatalogError('table unavailable', operation='insert')
        blob_store = MagicMock()
        blob_store.build_key.return_value = 'memorial_wall/x.jpg'
        blob_store.put.return_value = {'key': 'memorial_wall/x.jpg', 'url': 'https://b/x.jpg', 'etag': None}
        blob_store.thumbnail_url.return_value = 'https://b/x.jpg'
        blob_store.delete.return_value = {'success': False, 'key': 'memorial_wall/x.jpg', 'error': None}
        service = self.make_service(catalog, blob_store, event_bus)

        with pytest.raises(CatalogWriteFailed):
            service.upload_photo(sample_jpeg_bytes, 'image/jpeg')

        blob_store.delete.assert_called_once_with('memorial_wall/x.jpg')


class TestDeletePhoto:
    """Admin deletion pipeline"""

    def test_delete_removes_row_blob_and_publishes(self, photo_service, catalog, event_bus,
                                                   mock_aws_services, sample_jpeg_bytes):
        photo = photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg')
        subscription = event_bus.subscribe()

        result = photo_service.delete_photo(photo['id'])

        assert result['id'] == photo['id']
        assert result['blob_cleanup']['success'] is True
        with pytest.raises(PhotoNotFoundError):
            catalog.get(photo['id'])
        assert list_bucket_keys(mock_aws_services['s3']) == []
        assert drain_events(subscription) == [hello_event(), photo_deleted_event(photo['id'])]

    def test_delete_unknown_photo(self, photo_service, event_bus):
        subscription = event_bus.subscribe()

        with pytest.raises(PhotoNotFoundError):
            photo_service.delete_photo('missing')

        assert drain_events(subscription) == [hello_event()]

    def test_delete_proceeds_when_blob_delete_fails(self, photo_service, blob_store, catalog, sample_jpeg_bytes):
        photo = photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg')
        failure = {'success': False, 'key': f"memorial_wall/{photo['id']}.jpg", 'error': None}

        with patch.object(blob_store, 'delete', return_value=failure):
            result = photo_service.delete_photo(photo['id'])

        assert result['blob_cleanup']['success'] is False
        assert catalog.count() == 0

    def test_second_delete_reports_not_found(self, photo_service, sample_jpeg_bytes):
        photo = photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg')
        photo_service.delete_photo(photo['id'])

        with pytest.raises(PhotoNotFoundError):
            photo_service.delete_photo(photo['id'])


class TestListPhotos:
    """Listing with limits"""

    def test_default_limit(self, photo_service, sample_jpeg_bytes):
        photo_service.upload_photo(sample_jpeg_bytes, 'image/jpeg')
        assert len(photo_service.list_photos()) == 1

    def test_limit_from_query_string(self, photo_service):
        photo_service.capacity_enforcer = MagicMock()
        for color in ('red', 'green', 'blue'):
            photo_service.upload_photo(make_image_bytes('JPEG', color=color), 'image/jpeg')

        assert len(photo_service.list_photos('2')) == 2
        assert len(photo_service.list_photos(0)) == 1

    def test_invalid_limit(self, photo_service):
        with pytest.raises(ValidationError):
            photo_service.list_photos('lots')
