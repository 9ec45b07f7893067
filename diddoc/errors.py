"""Error types for diddoc.

Every failure raised by the library is a ``DidDocError`` carrying a
``kind`` from the closed ``ErrorKind`` enumeration. Callers branch on
``err.kind`` rather than on exception identity; the subclasses exist so that
``except NotFoundError`` reads naturally at call sites.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Closed set of failure kinds."""
    NOT_FOUND = "not_found"
    INVALID_TYPE_CONVERSION = "invalid_type_conversion"
    UNSUPPORTED_SOURCE = "unsupported_source_type"
    UNSUPPORTED_DESTINATION = "unsupported_destination_type"
    STRUCT_MISMATCH = "unsupported_struct"
    MAP_MISMATCH = "unsupported_map"
    UNADDRESSABLE = "unaddressable_interface"
    NOT_A_POINTER = "invalid_interface"
    TOO_DEEP = "too_deep"
    INVALID_KEY = "invalid_key"
    FROZEN = "document_frozen"
    UNSUPPORTED_KEY = "unsupported_key_material"


class DidDocError(Exception):
    """Base exception for all diddoc failures."""

    def __init__(self, kind: ErrorKind, message: str = "", path: str = ""):
        self.kind = kind
        self.message = message or kind.value
        self.path = path
        if path:
            super().__init__(f"{kind.value}: {path}: {self.message}")
        else:
            super().__init__(f"{kind.value}: {self.message}")


class CoercionError(DidDocError):
    """The coercion engine could not bridge a source value and a shape."""
    pass


class NotFoundError(DidDocError):
    """A property, relationship or verification method is absent."""

    def __init__(self, message: str = "", path: str = ""):
        super().__init__(ErrorKind.NOT_FOUND, message, path)


class DocumentFrozenError(DidDocError):
    """Mutation attempted on a frozen Document."""

    def __init__(self, key: str):
        super().__init__(ErrorKind.FROZEN, f"cannot set {key!r} on a frozen document")
        self.key = key


class BuildError(DidDocError):
    """``DocumentBuilder.build`` failed to store a property.

    ``document`` holds the partial (unfrozen) Document assembled before the
    failing key.
    """

    def __init__(self, key: Any, cause: DidDocError, document: Any = None):
        super().__init__(cause.kind, f"failed to set property {key!r}: {cause.message}")
        self.key = key
        self.cause = cause
        self.document = document


class KeyMaterialError(DidDocError):
    """Verification method key material cannot be loaded."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(ErrorKind.UNSUPPORTED_KEY, message, path)


_NO_VALUE = object()


def coercion_error(kind: ErrorKind, message: str, path: str = "", value: Any = _NO_VALUE) -> CoercionError:
    """Build a CoercionError, naming the offending source type when given."""
    if value is not _NO_VALUE:
        message = f"{message} (got {type(value).__name__})"
    return CoercionError(kind, message, path)
