"""
Schema-driven hierarchical serializer for the category/product catalog.

The shape of the document is data: a NodeSchema names the collection and
item containers, lists the fields in emission order and optionally nests a
child schema. The serializer walks any such schema depth-first and drives a
mode-specific NodeWriter, so switching mode changes only how fields are
attached, never which values are written or in what order.
"""

import io
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from operator import attrgetter
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple, Union

from catalog_export.catalog.records import CategoryRecord, ProductRecord
from catalog_export.exporters.errors import EmptyInputWarning, SinkWriteError
from catalog_export.exporters.writers import SerializationMode, create_writer
from catalog_export.utils.logger import setup_logger

ZERO_PRICE = Decimal('0')
ZERO_STOCK = 0


@dataclass(frozen=True)
class FieldSpec:
    """A named scalar pulled out of a record."""
    name: str
    extract: Callable[[Any], Any]


@dataclass(frozen=True)
class ChildSpec:
    """A nested collection pulled out of a record."""
    extract: Callable[[Any], Sequence[Any]]
    schema: 'NodeSchema'


@dataclass(frozen=True)
class NodeSchema:
    collection: str
    item: str
    fields: Tuple[FieldSpec, ...]
    child: Optional[ChildSpec] = None


def _unit_price(product: ProductRecord) -> Decimal:
    return ZERO_PRICE if product.unit_price is None else product.unit_price


def _units_in_stock(product: ProductRecord) -> int:
    return ZERO_STOCK if product.units_in_stock is None else product.units_in_stock


PRODUCT_SCHEMA = NodeSchema(
    collection='Products',
    item='Product',
    fields=(
        FieldSpec('Id', attrgetter('id')),
        FieldSpec('Name', attrgetter('name')),
        FieldSpec('Cost', _unit_price),
        FieldSpec('Stock', _units_in_stock),
        FieldSpec('Discontinued', attrgetter('discontinued')),
    ),
)

CATALOG_SCHEMA = NodeSchema(
    collection='Categories',
    item='Category',
    fields=(
        FieldSpec('Id', attrgetter('id')),
        FieldSpec('Name', attrgetter('name')),
        FieldSpec('Description', attrgetter('description')),
        # Read from the live collection when the field is written
        FieldSpec('Count', lambda category: len(category.products)),
    ),
    child=ChildSpec(attrgetter('products'), PRODUCT_SCHEMA),
)


@dataclass(frozen=True)
class SerializationSummary:
    """What a finished serialization wrote."""
    mode: SerializationMode
    counts: Dict[str, int]
    warnings: Tuple[Warning, ...] = field(default_factory=tuple)

    @property
    def categories(self) -> int:
        return self.counts.get(CATALOG_SCHEMA.item, 0)

    @property
    def products(self) -> int:
        return self.counts.get(PRODUCT_SCHEMA.item, 0)


class HierarchicalSerializer:
    """
    Walks records according to a schema and writes them through a NodeWriter.
    """

    def __init__(self, schema: NodeSchema = CATALOG_SCHEMA):
        """
        Initialize serializer.

        Args:
            schema: Document shape; defaults to the category/product catalog
        """
        self.schema = schema
        self.logger = setup_logger(name="serializer")

    def serialize(
        self,
        records: Iterable[Any],
        mode: SerializationMode,
        sink,
        indent: Optional[int] = 2
    ) -> SerializationSummary:
        """
        Write a complete document for the records onto the sink.

        Args:
            records: Top-level records in export order (may be empty)
            mode: Serialization mode
            sink: Text stream with write() and, optionally, flush()
            indent: Spaces per nesting level, None for compact output

        Returns:
            SerializationSummary with per-item counts and warnings

        Raises:
            SinkWriteError: If the sink refuses output
            EncodingError: If a value cannot be represented in the mode's grammar
        """
        mode = SerializationMode(mode)
        records = tuple(records)
        writer = create_writer(mode, sink, indent)
        counts: Counter = Counter()

        writer.start_document()
        self._write_collection(writer, self.schema, records, counts)
        writer.end_document()

        warnings: Tuple[Warning, ...] = ()
        if not records:
            warnings = (EmptyInputWarning(f"No {self.schema.item.lower()} records to serialize"),)

        self.logger.debug(
            f"Serialized {mode.value} document: "
            + ", ".join(f"{counts[name]} {name}" for name in self._item_names())
        )
        return SerializationSummary(
            mode=mode,
            counts={name: counts[name] for name in self._item_names()},
            warnings=warnings,
        )

    def _write_collection(self, writer, schema: NodeSchema, records: Iterable[Any], counts: Counter):
        writer.open_collection(schema.collection)
        for record in records:
            writer.open_item(schema.item)
            for spec in schema.fields:
                writer.write_field(spec.name, spec.extract(record))
            if schema.child is not None:
                self._write_collection(writer, schema.child.schema, schema.child.extract(record), counts)
            writer.close()
            counts[schema.item] += 1
        writer.close()

    def _item_names(self):
        schema = self.schema
        while schema is not None:
            yield schema.item
            schema = schema.child.schema if schema.child else None


def serialize(
    categories: Iterable[CategoryRecord],
    mode: SerializationMode,
    sink,
    indent: Optional[int] = 2
) -> SerializationSummary:
    """Serialize a catalog onto a caller-owned text sink."""
    return HierarchicalSerializer().serialize(categories, mode, sink, indent)


def serialize_to_string(
    categories: Iterable[CategoryRecord],
    mode: SerializationMode,
    indent: Optional[int] = 2
) -> str:
    """Serialize a catalog into a string."""
    buffer = io.StringIO()
    serialize(categories, mode, buffer, indent)
    return buffer.getvalue()


def serialize_to_path(
    categories: Iterable[CategoryRecord],
    mode: SerializationMode,
    path: Union[str, Path],
    indent: Optional[int] = 2
) -> SerializationSummary:
    """
    Serialize a catalog into a file, creating or overwriting it.

    The file is closed on every exit path. On failure a partial document
    may remain; deleting it is up to the caller.

    Raises:
        SinkWriteError: If the file cannot be opened, written or closed
        EncodingError: If a value cannot be represented in the mode's grammar
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = open(path, 'w', encoding='utf-8', newline='\n')
    except OSError as e:
        raise SinkWriteError(f"Cannot open {path} for writing: {e}") from e

    try:
        return serialize(categories, mode, sink, indent)
    finally:
        try:
            sink.close()
        except OSError as e:
            raise SinkWriteError(f"Failed to close {path}: {e}") from e
