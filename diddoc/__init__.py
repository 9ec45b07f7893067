"""diddoc: DID Document data model.

Architecture:
    diddoc/
    ├── __init__.py       # Package entry, version, public API
    ├── errors.py         # ErrorKind and exception types
    ├── coerce.py         # Value coercion engine (decoded JSON -> typed shapes)
    ├── types.py          # VerificationMethod, Service, Proof, ProofPurpose
    ├── document.py       # Ordered property bag + JSON encoding
    ├── builder.py        # Per-key dispatch into a frozen Document
    ├── resolver.py       # Verification method resolution
    ├── keys.py           # publicKeyJwk / publicKeyMultibase -> cryptography keys
    ├── core.py           # File loading, canonical JSON, hashing
    ├── config.py         # YAML + environment configuration
    ├── observability.py  # Logging setup
    └── cli.py            # Command-line interface

Typical use:

    doc = Document.loads(raw_json)
    for vm in doc.verification_methods_for(ProofPurpose.AUTHENTICATION):
        ...
"""

__version__ = "0.3.0"

from diddoc.errors import (
    BuildError,
    CoercionError,
    DidDocError,
    DocumentFrozenError,
    ErrorKind,
    KeyMaterialError,
    NotFoundError,
)

from diddoc.coerce import (
    ANY,
    ANY_LIST,
    STRING,
    STRING_LIST,
    Shape,
    ShapeKind,
    coerce,
    coerce_into,
    list_of,
    mapping,
    record,
)

from diddoc.types import (
    DocumentMetadata,
    Proof,
    ProofPurpose,
    Service,
    VerificationMethod,
)

from diddoc.document import Document
from diddoc.builder import DocumentBuilder, build_document
from diddoc.resolver import resolve_all, resolve_by_id, resolve_by_purpose

__all__ = [
    "__version__",
    "ANY",
    "ANY_LIST",
    "BuildError",
    "CoercionError",
    "DidDocError",
    "Document",
    "DocumentBuilder",
    "DocumentFrozenError",
    "DocumentMetadata",
    "ErrorKind",
    "KeyMaterialError",
    "NotFoundError",
    "Proof",
    "ProofPurpose",
    "STRING",
    "STRING_LIST",
    "Service",
    "Shape",
    "ShapeKind",
    "VerificationMethod",
    "build_document",
    "coerce",
    "coerce_into",
    "list_of",
    "mapping",
    "record",
    "resolve_all",
    "resolve_by_id",
    "resolve_by_purpose",
]
