"""
Exporters package - hierarchical serializer and the JSON and XML exporters
"""

from catalog_export.exporters.errors import (
    EmptyInputWarning,
    EncodingError,
    SerializationError,
    SinkWriteError,
    WriterStateError,
)
from catalog_export.exporters.writers import SerializationMode
from catalog_export.exporters.serializer import (
    HierarchicalSerializer,
    SerializationSummary,
    serialize,
    serialize_to_path,
    serialize_to_string,
)
from catalog_export.exporters.json_exporter import JSONExporter
from catalog_export.exporters.xml_exporter import XMLExporter

__all__ = [
    'EmptyInputWarning',
    'EncodingError',
    'SerializationError',
    'SinkWriteError',
    'WriterStateError',
    'SerializationMode',
    'HierarchicalSerializer',
    'SerializationSummary',
    'serialize',
    'serialize_to_path',
    'serialize_to_string',
    'JSONExporter',
    'XMLExporter',
]
