"""
Catalog export - dump a category/product catalog to XML and JSON
"""

__version__ = "0.1.0"
