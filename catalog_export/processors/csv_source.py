"""
CSV catalog source: reads categories and products exported from the
Northwind tables using Pandas
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from catalog_export.catalog.records import CategoryRecord, ProductRecord
from catalog_export.catalog.source import CatalogSource
from catalog_export.utils.logger import setup_logger

CATEGORY_REQUIRED_COLUMNS = ('CategoryID', 'CategoryName')
PRODUCT_REQUIRED_COLUMNS = ('ProductID', 'ProductName', 'CategoryID', 'Discontinued')

TRUE_VALUES = {'1', 'true', 't', 'yes', 'y'}
FALSE_VALUES = {'0', 'false', 'f', 'no', 'n'}


def _is_blank(value) -> bool:
    return value is None or pd.isna(value) or str(value).strip() == ''


def _to_int(value) -> Optional[int]:
    if _is_blank(value):
        return None
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    # Columns with blanks sometimes come back as "3.0"
    number = _to_decimal(text)
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"Not an integer: {text!r}")
    return int(number)


def _to_decimal(value) -> Optional[Decimal]:
    if _is_blank(value):
        return None
    text = str(value).strip()
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Not a decimal number: {text!r}")


def _to_bool(value) -> bool:
    text = '' if _is_blank(value) else str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _to_text(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return str(value)


class CSVCatalogSource(CatalogSource):
    """
    Catalog source backed by two CSV files, one row per category and one row
    per product. Products are attached to their category by CategoryID and
    keep the order of the products file.
    """

    def __init__(self, categories_csv: Path, products_csv: Path):
        """
        Initialize the CSV source.

        Args:
            categories_csv: CSV with CategoryID, CategoryName[, Description]
            products_csv: CSV with ProductID, ProductName, CategoryID, Discontinued[, UnitPrice, UnitsInStock]
        """
        self.categories_csv = Path(categories_csv)
        self.products_csv = Path(products_csv)
        self.logger = setup_logger(name="csv_source")

    def read_csv(self, csv_path: Path, required_columns) -> pd.DataFrame:
        """
        Read a catalog CSV file as text columns.

        Args:
            csv_path: Path to CSV file
            required_columns: Columns the file must contain

        Returns:
            DataFrame with every column as text (blank cells are NaN)

        Raises:
            FileNotFoundError: If CSV file doesn't exist
            ValueError: If CSV file is malformed or misses a required column
        """
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_path}")

        self.logger.info(f"Reading CSV file: {csv_path}")

        try:
            # Text dtype keeps prices exact and ids unmangled
            df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, na_values=[''])
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            self.logger.error(f"Error reading CSV file: {e}")
            raise ValueError(f"Failed to read CSV file {csv_path}: {e}") from e

        missing = [column for column in required_columns if column not in df.columns]
        if missing:
            raise ValueError(f"CSV file {csv_path} must contain columns: {', '.join(missing)}")

        self.logger.info(f"Loaded {len(df)} rows from {csv_path.name}")
        return df

    def parse_products(self, df: pd.DataFrame) -> List[ProductRecord]:
        """
        Convert product rows to records, in file order.

        Raises:
            ValueError: If a row holds an invalid value (the row number is reported)
        """
        products = []
        for row_number, row in enumerate(df.to_dict('records'), start=2):
            try:
                products.append(ProductRecord(
                    id=_to_int(row['ProductID']),
                    name=_to_text(row['ProductName']),
                    category_id=_to_int(row['CategoryID']),
                    unit_price=_to_decimal(row.get('UnitPrice')),
                    units_in_stock=_to_int(row.get('UnitsInStock')),
                    discontinued=_to_bool(row['Discontinued']),
                ))
            except ValueError as e:
                raise ValueError(f"{self.products_csv.name} line {row_number}: {e}") from e
        return products

    def parse_categories(self, df: pd.DataFrame, products: List[ProductRecord]) -> List[CategoryRecord]:
        """
        Convert category rows to records owning their products, in file order.

        Products whose CategoryID matches no category are left out.

        Raises:
            ValueError: If a row holds an invalid value or a category id repeats
        """
        by_category: Dict[int, List[ProductRecord]] = {}
        for product in products:
            by_category.setdefault(product.category_id, []).append(product)

        categories = []
        seen = set()
        for row_number, row in enumerate(df.to_dict('records'), start=2):
            try:
                category_id = _to_int(row['CategoryID'])
                if category_id in seen:
                    raise ValueError(f"Duplicate CategoryID {category_id}")
                seen.add(category_id)
                categories.append(CategoryRecord(
                    id=category_id,
                    name=_to_text(row['CategoryName']),
                    description=_to_text(row.get('Description')),
                    products=tuple(by_category.get(category_id, ())),
                ))
            except ValueError as e:
                raise ValueError(f"{self.categories_csv.name} line {row_number}: {e}") from e

        orphans = [product.id for product in products if product.category_id not in seen]
        if orphans:
            self.logger.warning(
                f"Skipped {len(orphans)} products without a known category. Examples: {orphans[:5]}"
            )

        return categories

    def fetch_categories_with_products(self) -> List[CategoryRecord]:
        """
        Read both CSV files and build the category tree.

        Raises:
            FileNotFoundError: If a CSV file doesn't exist
            ValueError: If a CSV file is malformed
        """
        categories_df = self.read_csv(self.categories_csv, CATEGORY_REQUIRED_COLUMNS)
        products_df = self.read_csv(self.products_csv, PRODUCT_REQUIRED_COLUMNS)

        products = self.parse_products(products_df)
        categories = self.parse_categories(categories_df, products)

        self.logger.info(
            f"Built catalog of {len(categories)} categories with "
            f"{sum(category.count for category in categories)} products"
        )
        return categories
