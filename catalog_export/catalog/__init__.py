"""
Catalog package - in-memory snapshot records and the data source interface
"""

from catalog_export.catalog.records import CategoryRecord, ProductRecord
from catalog_export.catalog.source import CatalogSource, CatalogSourceError, InMemoryCatalogSource

__all__ = [
    'CategoryRecord',
    'ProductRecord',
    'CatalogSource',
    'CatalogSourceError',
    'InMemoryCatalogSource',
]
