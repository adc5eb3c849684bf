"""
Storage package - Database models and connections
"""

from catalog_export.storage.models import Base, Category, Product
from catalog_export.storage.database import DatabaseManager

__all__ = ['Base', 'Category', 'Product', 'DatabaseManager']
