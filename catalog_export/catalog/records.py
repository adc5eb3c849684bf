"""
Materialized catalog snapshot handed to the serializer.

Records are immutable: the data source builds them once, fully loaded, and
nothing downstream can trigger further fetching or mutate them.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

CATEGORY_NAME_MAX_LENGTH = 15
PRODUCT_NAME_MAX_LENGTH = 40


def _check_id(owner: str, value) -> None:
    # bool is an int subclass but never a valid key
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{owner} id must be an integer, got {value!r}")


def _check_name(owner: str, value, max_length: int) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{owner} name is required")
    if len(value) > max_length:
        raise ValueError(f"{owner} name exceeds {max_length} characters: {value!r}")


@dataclass(frozen=True)
class ProductRecord:
    """A single product as loaded from the catalog."""

    id: int
    name: str
    discontinued: bool
    category_id: Optional[int] = None
    unit_price: Optional[Decimal] = None
    units_in_stock: Optional[int] = None

    def __post_init__(self):
        _check_id("Product", self.id)
        _check_name("Product", self.name, PRODUCT_NAME_MAX_LENGTH)
        if not isinstance(self.discontinued, bool):
            raise ValueError(f"Product discontinued flag must be a bool, got {self.discontinued!r}")
        if self.unit_price is not None and not isinstance(self.unit_price, Decimal):
            # Accept ints and numeric strings; floats go through str() to keep their printed digits
            object.__setattr__(self, 'unit_price', Decimal(str(self.unit_price)))


@dataclass(frozen=True)
class CategoryRecord:
    """A category together with the products it owns, in catalog order."""

    id: int
    name: str
    description: Optional[str] = None
    products: Tuple[ProductRecord, ...] = field(default_factory=tuple)

    def __post_init__(self):
        _check_id("Category", self.id)
        _check_name("Category", self.name, CATEGORY_NAME_MAX_LENGTH)
        if not isinstance(self.products, tuple):
            object.__setattr__(self, 'products', tuple(self.products))

    @property
    def count(self) -> int:
        """Number of products owned, computed on every access."""
        return len(self.products)
