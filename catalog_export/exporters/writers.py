"""
Streaming node writers, one per serialization mode.

A writer turns a sequence of structural calls (open a collection, open an
item, write a field, close) into text on a sink, without ever holding more
than the currently open path of the tree. Open nodes live on an explicit
stack, so an interrupted run can always tell which nodes were left
unterminated.
"""

import json
import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple, Type
from xml.sax.saxutils import escape, quoteattr

from catalog_export.exporters.errors import (
    EncodingError,
    SerializationError,
    SinkWriteError,
    WriterStateError,
)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'

# Anything outside the XML 1.0 Char production
_XML_ILLEGAL_CHARS = re.compile('[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]')


class SerializationMode(Enum):
    """How scalar fields are attached to their parent node."""
    TAGGED_ELEMENTS = "tagged_elements"
    TAGGED_ATTRIBUTES = "tagged_attributes"
    OBJECT_GRAPH = "object_graph"


class WriterState(Enum):
    UNOPENED = "unopened"
    DOCUMENT_OPEN = "document_open"
    DOCUMENT_CLOSED = "document_closed"
    FAILED = "failed"


class NodeKind(Enum):
    COLLECTION = "collection"
    ITEM = "item"


class _Node:
    """Bookkeeping for one open container."""

    __slots__ = ('name', 'kind', 'depth', 'members', 'attributes', 'tag_open')

    def __init__(self, name: str, kind: NodeKind, depth: int):
        self.name = name
        self.kind = kind
        self.depth = depth
        self.members = 0
        self.attributes: List[Tuple[str, str]] = []
        self.tag_open = False


def format_number(name: str, value: Any) -> str:
    """Render an int, float or Decimal without exponent notation."""
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise EncodingError(f"Field '{name}' holds a non-finite number: {value}")
        return format(value, 'f')
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodingError(f"Field '{name}' holds a non-finite number: {value}")
        return repr(value)
    return str(value)


class NodeWriter:
    """
    Base writer: state machine, open-node stack and guarded sink access.

    Subclasses only decide what text each structural event produces.
    """

    mode: SerializationMode

    def __init__(self, sink, indent: Optional[int] = 2):
        """
        Args:
            sink: Text stream with write() and, optionally, flush()
            indent: Spaces per nesting level, None for compact output
        """
        self.sink = sink
        self.indent = indent
        self.state = WriterState.UNOPENED
        self._stack: List[_Node] = []

    @property
    def open_nodes(self) -> Tuple[str, ...]:
        """Names of the containers currently open, outermost first."""
        return tuple(node.name for node in self._stack)

    @property
    def is_complete(self) -> bool:
        """True once the document was terminated with every node closed."""
        return self.state is WriterState.DOCUMENT_CLOSED

    def start_document(self):
        if self.state is not WriterState.UNOPENED:
            raise WriterStateError(f"Document already started (state: {self.state.value})")
        self._guarded(self._begin_document)
        self.state = WriterState.DOCUMENT_OPEN

    def open_collection(self, name: str):
        self._open(name, NodeKind.COLLECTION)

    def open_item(self, name: str):
        self._open(name, NodeKind.ITEM)

    def write_field(self, name: str, value: Any):
        self._require_open()
        if not self._stack or self._stack[-1].kind is not NodeKind.ITEM:
            raise WriterStateError(f"Field '{name}' must be written inside an item")
        self._guarded(self._field, self._stack[-1], name, value)

    def close(self):
        self._require_open()
        if not self._stack:
            raise WriterStateError("No open node to close")
        node = self._stack[-1]
        self._guarded(self._finish_node, node)
        self._stack.pop()

    def end_document(self):
        self._require_open()
        if self._stack:
            raise WriterStateError(f"Cannot end document with open nodes: {'/'.join(self.open_nodes)}")
        self._guarded(self._end_document)
        self._guarded(self._flush)
        self.state = WriterState.DOCUMENT_CLOSED

    def _open(self, name: str, kind: NodeKind):
        self._require_open()
        parent = self._stack[-1] if self._stack else None
        node = _Node(name, kind, len(self._stack))
        self._guarded(self._begin_node, node, parent)
        self._stack.append(node)

    def _require_open(self):
        if self.state is not WriterState.DOCUMENT_OPEN:
            raise WriterStateError(f"Document is not open (state: {self.state.value})")

    def _guarded(self, operation, *args):
        try:
            operation(*args)
        except SerializationError:
            self.state = WriterState.FAILED
            raise

    def _emit(self, text: str):
        try:
            self.sink.write(text)
        except UnicodeEncodeError as e:
            # Must precede ValueError, of which it is a subclass
            raise EncodingError(f"Sink cannot encode output: {e}") from e
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"Failed to write to sink: {e}") from e

    def _flush(self):
        flush = getattr(self.sink, 'flush', None)
        if flush is None:
            return
        try:
            flush()
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"Failed to flush sink: {e}") from e

    def _newline(self, depth: int) -> str:
        if self.indent is None:
            return ''
        return '\n' + ' ' * (self.indent * depth)

    # Hooks

    def _begin_document(self):
        raise NotImplementedError

    def _begin_node(self, node: _Node, parent: Optional[_Node]):
        raise NotImplementedError

    def _field(self, node: _Node, name: str, value: Any):
        raise NotImplementedError

    def _finish_node(self, node: _Node):
        raise NotImplementedError

    def _end_document(self):
        raise NotImplementedError


class TaggedWriter(NodeWriter):
    """
    Shared XML plumbing.

    A start tag is held back until the node gets its first child element or
    is closed, so empty nodes come out self-closed and attributes can still
    be attached while the tag is pending.
    """

    def _begin_document(self):
        self._emit(XML_DECLARATION)

    def _begin_node(self, node, parent):
        if parent is not None:
            self._open_tag(parent)
            parent.members += 1

    def _finish_node(self, node):
        if node.tag_open:
            self._emit(f"{self._newline(node.depth)}</{node.name}>")
        else:
            self._emit(f"{self._newline(node.depth)}<{node.name}{self._attributes(node)} />")

    def _end_document(self):
        if self.indent is not None:
            self._emit('\n')

    def _open_tag(self, node: _Node):
        if node.tag_open:
            return
        self._emit(f"{self._newline(node.depth)}<{node.name}{self._attributes(node)}>")
        node.tag_open = True

    @staticmethod
    def _attributes(node: _Node) -> str:
        return ''.join(f" {name}={quoteattr(text)}" for name, text in node.attributes)

    @staticmethod
    def _text(name: str, value: Any) -> str:
        if value is None:
            return ''
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, (int, float, Decimal)):
            return format_number(name, value)
        if isinstance(value, str):
            match = _XML_ILLEGAL_CHARS.search(value)
            if match:
                raise EncodingError(
                    f"Field '{name}' contains character U+{ord(match.group()):04X} which XML cannot carry"
                )
            return value
        raise EncodingError(f"Field '{name}' has unsupported type {type(value).__name__}")


class TaggedElementWriter(TaggedWriter):
    """Every field becomes a child element carrying the value as text."""

    mode = SerializationMode.TAGGED_ELEMENTS

    def _field(self, node, name, value):
        text = self._text(name, value)
        self._open_tag(node)
        node.members += 1
        prefix = self._newline(node.depth + 1)
        if text:
            self._emit(f"{prefix}<{name}>{escape(text, {chr(13): '&#13;'})}</{name}>")
        else:
            self._emit(f"{prefix}<{name} />")


class TaggedAttributeWriter(TaggedWriter):
    """Every field becomes an attribute on the current element."""

    mode = SerializationMode.TAGGED_ATTRIBUTES

    def _field(self, node, name, value):
        if node.tag_open:
            raise WriterStateError(f"Attribute '{name}' must be written before child nodes of '{node.name}'")
        if any(existing == name for existing, _ in node.attributes):
            raise WriterStateError(f"Attribute '{name}' already written on '{node.name}'")
        node.attributes.append((name, self._text(name, value)))


class ObjectGraphWriter(NodeWriter):
    """
    JSON writer: items are objects, collections are arrays, fields are
    key/value pairs. The whole document is a single root object.
    """

    mode = SerializationMode.OBJECT_GRAPH

    def __init__(self, sink, indent: Optional[int] = 2):
        super().__init__(sink, indent)
        self._root = _Node('', NodeKind.ITEM, -1)

    def _begin_document(self):
        self._emit('{')

    def _begin_node(self, node, parent):
        container = parent or self._root
        opener = '[' if node.kind is NodeKind.COLLECTION else '{'
        if container.kind is NodeKind.COLLECTION:
            self._emit(f"{self._member_prefix(container)}{opener}")
        else:
            self._emit(f"{self._member_prefix(container)}{self._key(node.name)}{opener}")

    def _field(self, node, name, value):
        self._emit(f"{self._member_prefix(node)}{self._key(name)}{self._scalar(name, value)}")

    def _finish_node(self, node):
        self._close_container(node, ']' if node.kind is NodeKind.COLLECTION else '}')

    def _end_document(self):
        self._close_container(self._root, '}')
        if self.indent is not None:
            self._emit('\n')

    def _close_container(self, node: _Node, closer: str):
        if node.members:
            self._emit(f"{self._newline(node.depth + 1)}{closer}")
        else:
            self._emit(closer)

    def _member_prefix(self, container: _Node) -> str:
        separator = ',' if container.members else ''
        container.members += 1
        return separator + self._newline(container.depth + 2)

    def _key(self, name: str) -> str:
        return json.dumps(name, ensure_ascii=False) + (': ' if self.indent is not None else ':')

    @staticmethod
    def _scalar(name: str, value: Any) -> str:
        if value is None:
            return 'null'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, (int, float, Decimal)):
            return format_number(name, value)
        if isinstance(value, str):
            return json.dumps(value, ensure_ascii=False)
        raise EncodingError(f"Field '{name}' has unsupported type {type(value).__name__}")


WRITERS = {
    SerializationMode.TAGGED_ELEMENTS: TaggedElementWriter,
    SerializationMode.TAGGED_ATTRIBUTES: TaggedAttributeWriter,
    SerializationMode.OBJECT_GRAPH: ObjectGraphWriter,
}


def writer_class(mode: SerializationMode) -> Type[NodeWriter]:
    """Look up the writer implementing a serialization mode."""
    return WRITERS[SerializationMode(mode)]


def create_writer(mode: SerializationMode, sink, indent: Optional[int] = 2) -> NodeWriter:
    """Build the writer for a mode around a sink."""
    return writer_class(mode)(sink, indent)
