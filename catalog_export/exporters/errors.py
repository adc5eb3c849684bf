"""
Exceptions raised while serializing a catalog
"""


class SerializationError(Exception):
    """Base class for every failure of a serialization run."""
    pass


class SinkWriteError(SerializationError):
    """The output sink refused further bytes (disk full, closed stream, ...)."""
    pass


class EncodingError(SerializationError):
    """A field value cannot be represented in the target grammar."""
    pass


class WriterStateError(SerializationError):
    """A writer was driven out of order (unbalanced close, write after end, ...)."""
    pass


class EmptyInputWarning(UserWarning):
    """The category sequence was empty; the document is valid but has no categories."""
    pass
