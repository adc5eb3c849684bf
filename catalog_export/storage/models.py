"""
SQLAlchemy models for the Northwind Categories and Products tables
"""

from decimal import Decimal

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Numeric, SmallInteger, String, Text
from sqlalchemy.orm import declarative_base, relationship

from catalog_export.catalog.records import (
    CATEGORY_NAME_MAX_LENGTH,
    PRODUCT_NAME_MAX_LENGTH,
    CategoryRecord,
    ProductRecord,
)

Base = declarative_base()


class Category(Base):
    """
    Model for a product category.
    """
    __tablename__ = 'Categories'

    category_id = Column('CategoryID', Integer, primary_key=True)
    category_name = Column('CategoryName', String(CATEGORY_NAME_MAX_LENGTH), nullable=False)
    description = Column('Description', Text, nullable=True)

    products = relationship(
        'Product',
        back_populates='category',
        order_by='Product.product_id',
        cascade='all, delete-orphan'
    )

    __table_args__ = (
        Index('idx_category_name', 'CategoryName'),
    )

    def __repr__(self) -> str:
        return f"<Category(category_id={self.category_id}, category_name='{self.category_name}')>"

    def to_record(self) -> CategoryRecord:
        """
        Convert the category and its loaded products to a snapshot record.

        Returns:
            CategoryRecord owning one ProductRecord per product
        """
        return CategoryRecord(
            id=self.category_id,
            name=self.category_name,
            description=self.description,
            products=tuple(product.to_record() for product in self.products),
        )

    @classmethod
    def from_record(cls, record: CategoryRecord) -> 'Category':
        """Create a category row (with product rows) from a snapshot record."""
        return cls(
            category_id=record.id,
            category_name=record.name,
            description=record.description,
            products=[Product.from_record(product, record.id) for product in record.products],
        )


class Product(Base):
    """
    Model for a product. Only the columns the export reads are guaranteed to
    be populated; the rest mirror the Northwind schema.
    """
    __tablename__ = 'Products'

    product_id = Column('ProductID', Integer, primary_key=True)
    product_name = Column('ProductName', String(PRODUCT_NAME_MAX_LENGTH), nullable=False)
    supplier_id = Column('SupplierID', Integer, nullable=True)
    category_id = Column('CategoryID', Integer, ForeignKey('Categories.CategoryID'), nullable=True)
    quantity_per_unit = Column('QuantityPerUnit', String(20), nullable=True)
    unit_price = Column('UnitPrice', Numeric(10, 2), nullable=True)
    units_in_stock = Column('UnitsInStock', SmallInteger, nullable=True)
    units_on_order = Column('UnitsOnOrder', SmallInteger, nullable=True)
    reorder_level = Column('ReorderLevel', SmallInteger, nullable=True)
    discontinued = Column('Discontinued', Boolean, nullable=False, default=False)

    category = relationship('Category', back_populates='products')

    __table_args__ = (
        Index('idx_product_category', 'CategoryID'),
        Index('idx_product_name', 'ProductName'),
    )

    def __repr__(self) -> str:
        return f"<Product(product_id={self.product_id}, product_name='{self.product_name}', category_id={self.category_id})>"

    def to_record(self) -> ProductRecord:
        """Convert the product row to a snapshot record."""
        unit_price = self.unit_price
        if unit_price is not None and not isinstance(unit_price, Decimal):
            unit_price = Decimal(str(unit_price))

        return ProductRecord(
            id=self.product_id,
            name=self.product_name,
            category_id=self.category_id,
            unit_price=unit_price,
            units_in_stock=self.units_in_stock,
            discontinued=bool(self.discontinued),
        )

    @classmethod
    def from_record(cls, record: ProductRecord, category_id: int) -> 'Product':
        """Create a product row owned by category_id from a snapshot record."""
        return cls(
            product_id=record.id,
            product_name=record.name,
            category_id=category_id,
            unit_price=record.unit_price,
            units_in_stock=record.units_in_stock,
            discontinued=record.discontinued,
        )
