"""Fluent DID Document builder.

Each well-known key is coerced into its typed shape as soon as it is added;
unknown keys pass through untouched as extension properties. A coercion
failure raises immediately: a mistyped well-known property would corrupt
every typed accessor downstream, so it never reaches ``build``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from diddoc.coerce import ANY_LIST, STRING, STRING_LIST, Shape, coerce, list_of, record
from diddoc.document import Document
from diddoc.errors import BuildError, DidDocError
from diddoc.observability import log_extra
from diddoc.types import (
    ALSO_KNOWN_AS_KEY,
    ASSERTION_METHOD_KEY,
    AUTHENTICATION_KEY,
    CAPABILITY_DELEGATION_KEY,
    CAPABILITY_INVOCATION_KEY,
    CONTEXT_KEY,
    CONTROLLER_KEY,
    KEY_AGREEMENT_KEY,
    SERVICE_KEY,
    SUBJECT_KEY,
    VERIFICATION_METHOD_KEY,
    Service,
    VerificationMethod,
)

logger = logging.getLogger(__name__)

VERIFICATION_METHOD_LIST = list_of(record(VerificationMethod))
SERVICE_LIST = list_of(record(Service))

# Shape each well-known key is coerced into. Relationship lists only get
# their list shape normalized; elements are resolved on demand.
KEY_SHAPES: Dict[str, Shape] = {
    CONTEXT_KEY: STRING_LIST,
    SUBJECT_KEY: STRING,
    ALSO_KNOWN_AS_KEY: STRING_LIST,
    CONTROLLER_KEY: STRING_LIST,
    VERIFICATION_METHOD_KEY: VERIFICATION_METHOD_LIST,
    AUTHENTICATION_KEY: ANY_LIST,
    ASSERTION_METHOD_KEY: ANY_LIST,
    KEY_AGREEMENT_KEY: ANY_LIST,
    CAPABILITY_INVOCATION_KEY: ANY_LIST,
    CAPABILITY_DELEGATION_KEY: ANY_LIST,
    SERVICE_KEY: SERVICE_LIST,
}


class DocumentBuilder:
    """Accumulates properties and produces a frozen ``Document``."""

    def __init__(self, max_depth: Optional[int] = None):
        self._properties: List[Tuple[Any, Any]] = []
        self._max_depth = max_depth

    def _property(self, key: Any, value: Any) -> "DocumentBuilder":
        if value is not None:
            self._properties.append((key, value))
        return self

    def _typed(self, key: str, value: Any) -> "DocumentBuilder":
        if value is None:
            return self
        try:
            coerced = coerce(value, KEY_SHAPES[key], max_depth=self._max_depth, path=key)
        except DidDocError:
            logger.debug("rejected property %s", key, extra=log_extra("build.coerce", key=key))
            raise
        return self._property(key, coerced)

    # -- well-known properties -------------------------------------------

    def context(self, value: Any) -> "DocumentBuilder":
        """JSON-LD context: a string or a list of strings."""
        return self._typed(CONTEXT_KEY, value)

    def subject(self, value: Any) -> "DocumentBuilder":
        """The DID the document is about."""
        return self._typed(SUBJECT_KEY, value)

    def also_known_as(self, value: Any) -> "DocumentBuilder":
        """Other URIs identifying the same subject."""
        return self._typed(ALSO_KNOWN_AS_KEY, value)

    def controller(self, value: Any) -> "DocumentBuilder":
        """DID(s) authorized to change the document: a string or list of strings."""
        return self._typed(CONTROLLER_KEY, value)

    def verification_method(self, value: Any) -> "DocumentBuilder":
        """One verification method or a list of them, as records or mappings."""
        return self._typed(VERIFICATION_METHOD_KEY, value)

    def authentication(self, value: Any) -> "DocumentBuilder":
        return self._typed(AUTHENTICATION_KEY, value)

    def assertion_method(self, value: Any) -> "DocumentBuilder":
        return self._typed(ASSERTION_METHOD_KEY, value)

    def key_agreement(self, value: Any) -> "DocumentBuilder":
        return self._typed(KEY_AGREEMENT_KEY, value)

    def capability_invocation(self, value: Any) -> "DocumentBuilder":
        return self._typed(CAPABILITY_INVOCATION_KEY, value)

    def capability_delegation(self, value: Any) -> "DocumentBuilder":
        return self._typed(CAPABILITY_DELEGATION_KEY, value)

    def service(self, value: Any) -> "DocumentBuilder":
        """One service or a list of them, as records or mappings."""
        return self._typed(SERVICE_KEY, value)

    def custom_property(self, key: Any, value: Any) -> "DocumentBuilder":
        """Extension property, stored exactly as given."""
        logger.debug("extension property %s", key, extra=log_extra("build.extension", key=key))
        return self._property(key, value)

    # -- dispatch ----------------------------------------------------------

    def add(self, key: Any, value: Any) -> "DocumentBuilder":
        """Route ``key`` to its typed setter, or store it as an extension."""
        if key in KEY_SHAPES:
            return self._typed(key, value)
        return self.custom_property(key, value)

    def from_mapping(self, obj: Mapping[Any, Any]) -> "DocumentBuilder":
        """Add every top-level entry of a decoded JSON object, in order."""
        for key, value in obj.items():
            self.add(key, value)
        return self

    def build(self) -> Document:
        """Store the accumulated properties in a new Document and freeze it.

        Raises BuildError naming the first key that could not be stored; the
        error's ``document`` holds the properties stored before it.
        """
        doc = Document()
        for key, value in self._properties:
            try:
                doc.set(key, value)
            except DidDocError as ex:
                raise BuildError(key, ex, document=doc) from ex
        doc.freeze()
        logger.debug(
            "built document %s",
            doc.subject(),
            extra=log_extra("build", subject=doc.subject(), properties=len(doc)),
        )
        return doc


def build_document(obj: Mapping[Any, Any], max_depth: Optional[int] = None) -> Document:
    """Decode-side entry point: dispatch a decoded JSON object into a Document."""
    return DocumentBuilder(max_depth=max_depth).from_mapping(obj).build()
