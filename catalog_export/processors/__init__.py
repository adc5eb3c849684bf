"""
Processors package - file based catalog sources
"""

from catalog_export.processors.csv_source import CSVCatalogSource

__all__ = ['CSVCatalogSource']
