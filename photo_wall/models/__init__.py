"""
Photo wall data models
"""
from .photo import PhotoRecord, CatalogOrderIndex, build_catalog_rank, format_timestamp

__all__ = [
    'PhotoRecord',
    'CatalogOrderIndex',
    'build_catalog_rank',
    'format_timestamp',
]
