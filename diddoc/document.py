"""DID Document property bag.

A ``Document`` is an ordered collection of ``(key, value)`` properties.
Well-known properties hold the typed values produced by ``DocumentBuilder``;
any other key is an extension property kept exactly as it was stored.

Concurrency contract: a Document is mutated by a single owner and then
frozen. Writes take the instance lock; reads never do, so a Document must
not be read while another thread is still calling ``set``. Documents
returned by ``DocumentBuilder.build`` are already frozen.

Repeated keys: ``set`` on a key that is already present replaces its value
in place and keeps the key's original position.
"""

from __future__ import annotations

import base64
import json
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from diddoc.coerce import coerce, is_record, list_of, record, record_to_dict
from diddoc.core import canonical_json_bytes, sha256_bytes
from diddoc.errors import DidDocError, DocumentFrozenError, ErrorKind
from diddoc.types import (
    ALSO_KNOWN_AS_KEY,
    ASSERTION_METHOD_KEY,
    AUTHENTICATION_KEY,
    CAPABILITY_DELEGATION_KEY,
    CAPABILITY_INVOCATION_KEY,
    CONTEXT_KEY,
    CONTROLLER_KEY,
    KEY_AGREEMENT_KEY,
    PROOF_KEY,
    SERVICE_KEY,
    SUBJECT_KEY,
    VERIFICATION_METHOD_KEY,
    WELL_KNOWN_KEYS,
    DocumentMetadata,
    Proof,
    ProofPurpose,
    VerificationMethod,
)

if TYPE_CHECKING:
    from diddoc.builder import DocumentBuilder

# Emitted as a bare string when they hold exactly one element.
_SINGLETON_AS_STRING = frozenset({CONTEXT_KEY, CONTROLLER_KEY})


def encode_value(value: Any) -> Any:
    """Convert a stored value into plain JSON-compatible data."""
    if is_record(value):
        return record_to_dict(value, encode_value)
    if isinstance(value, Mapping):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Enum):
        return value.value
    return value


class Document:
    """Ordered, extensible DID Document."""

    def __init__(self, properties: Optional[Mapping[str, Any]] = None):
        self._lock = threading.Lock()
        self._properties: Dict[str, Any] = {}
        self._frozen = False
        if properties:
            for key, value in properties.items():
                self.set(key, value)

    # -- property bag ---------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default``."""
        return self._properties.get(key, default)

    def set(self, key: str, value: Any) -> "Document":
        """Store ``value`` under ``key``.

        Any string is a valid key, including "". Raises DocumentFrozenError
        once the document is frozen and DidDocError(INVALID_KEY) for keys
        that are not strings.
        """
        if not isinstance(key, str):
            raise DidDocError(ErrorKind.INVALID_KEY, f"property key must be a string, got {key!r}")
        with self._lock:
            if self._frozen:
                raise DocumentFrozenError(key)
            self._properties[key] = value
        return self

    def freeze(self) -> "Document":
        """Make the document read-only. Idempotent."""
        with self._lock:
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "Document":
        """Return a mutable shallow copy."""
        return Document(self._properties)

    def keys(self) -> List[str]:
        return list(self._properties)

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._properties.items())

    def extension_keys(self) -> List[str]:
        """Keys outside the well-known DID Core property set."""
        return [k for k in self._properties if k not in WELL_KNOWN_KEYS]

    def __contains__(self, key: object) -> bool:
        return key in self._properties

    def __len__(self) -> int:
        return len(self._properties)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._properties))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return list(self._properties.items()) == list(other._properties.items())

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "mutable"
        return f"<Document {self.subject()!r} {len(self)} properties, {state}>"

    # -- typed accessors -------------------------------------------------

    def context(self) -> Any:
        return self.get(CONTEXT_KEY)

    def subject(self) -> Any:
        return self.get(SUBJECT_KEY)

    def also_known_as(self) -> Any:
        return self.get(ALSO_KNOWN_AS_KEY)

    def controller(self) -> Any:
        return self.get(CONTROLLER_KEY)

    def verification_method(self) -> Any:
        return self.get(VERIFICATION_METHOD_KEY)

    def authentication(self) -> Any:
        return self.get(AUTHENTICATION_KEY)

    def assertion_method(self) -> Any:
        return self.get(ASSERTION_METHOD_KEY)

    def key_agreement(self) -> Any:
        return self.get(KEY_AGREEMENT_KEY)

    def capability_invocation(self) -> Any:
        return self.get(CAPABILITY_INVOCATION_KEY)

    def capability_delegation(self) -> Any:
        return self.get(CAPABILITY_DELEGATION_KEY)

    def services(self) -> Any:
        return self.get(SERVICE_KEY)

    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata(deactivated=False)

    def proofs(self) -> List[Proof]:
        """The ``proof`` extension property read as Proof records."""
        return coerce(self.get(PROOF_KEY), list_of(record(Proof)), path=PROOF_KEY)

    # -- verification method resolution ---------------------------------

    def verification_methods_for(self, purpose: Union[ProofPurpose, str]) -> List[VerificationMethod]:
        """Resolve the verification methods associated with ``purpose``."""
        from diddoc.resolver import resolve_by_purpose

        return resolve_by_purpose(self, purpose)

    def verification_method_by_id(self, key_id: str) -> VerificationMethod:
        """Find the ``verificationMethod`` entry whose id equals ``key_id``."""
        from diddoc.resolver import resolve_by_id

        return resolve_by_id(self, key_id)

    # -- encoding ---------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible representation, in property order."""
        out: Dict[str, Any] = {}
        for key, value in self._properties.items():
            if key in _SINGLETON_AS_STRING and isinstance(value, (list, tuple)) and len(value) == 1:
                out[key] = encode_value(value[0])
            else:
                out[key] = encode_value(value)
        return out

    def dumps(self, indent: Optional[int] = None) -> str:
        """Serialize to JSON text.

        ``indent`` defaults to ``serialization.indent`` from the config;
        0 produces compact output.
        """
        if indent is None:
            from diddoc.config import get_config

            indent = get_config().serialization.indent.get()
        if indent:
            return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def to_bytes(self) -> bytes:
        """Compact UTF-8 JSON bytes."""
        return self.dumps(indent=0).encode("utf-8")

    def canonical_bytes(self) -> bytes:
        """Canonical JSON bytes (sorted keys).

        Floats have no canonical form: a document holding one, anywhere,
        raises DidDocError(INVALID_TYPE_CONVERSION).
        """
        try:
            return canonical_json_bytes(self.to_dict())
        except ValueError as ex:
            raise DidDocError(ErrorKind.INVALID_TYPE_CONVERSION, str(ex)) from ex

    def digest(self) -> str:
        """SHA-256 hex digest of ``canonical_bytes()``; same float limit."""
        return sha256_bytes(self.canonical_bytes())

    # -- decoding ---------------------------------------------------------

    @classmethod
    def builder(cls) -> "DocumentBuilder":
        from diddoc.builder import DocumentBuilder

        return DocumentBuilder()

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "Document":
        """Build a frozen Document from an already-decoded JSON object."""
        from diddoc.builder import build_document

        if not isinstance(obj, Mapping):
            raise DidDocError(
                ErrorKind.INVALID_TYPE_CONVERSION,
                f"a DID document must be a JSON object, got {type(obj).__name__}",
            )
        return build_document(obj)

    @classmethod
    def loads(cls, data: Union[str, bytes, bytearray]) -> "Document":
        """Decode JSON text and build a frozen Document."""
        return cls.from_dict(json.loads(data))
