"""Verification method resolution.

Relationship lists (``authentication``, ``assertionMethod``, ...) hold a mix
of embedded verification methods, not-yet-coerced mappings, and string
references into the document's ``verificationMethod`` list. Resolution
turns such a list into concrete ``VerificationMethod`` records:

- references are looked up by exact id; a reference that does not resolve,
  or resolves to a malformed entry, is skipped (the key it named may have
  been revoked);
- mappings are coerced, and a malformed one fails the whole call;
- embedded records are returned as they are.

Order of the relationship list is preserved. An absent, empty, or fully
unresolved list raises ``NotFoundError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Union

from diddoc.coerce import coerce, record
from diddoc.errors import DidDocError, ErrorKind, NotFoundError
from diddoc.observability import log_extra
from diddoc.types import VERIFICATION_METHOD_KEY, ProofPurpose, VerificationMethod

if TYPE_CHECKING:
    from diddoc.document import Document

logger = logging.getLogger(__name__)

_VERIFICATION_METHOD = record(VerificationMethod)


def _as_purpose(purpose: Union[ProofPurpose, str]) -> ProofPurpose:
    if isinstance(purpose, ProofPurpose):
        return purpose
    try:
        return ProofPurpose(purpose)
    except ValueError as ex:
        raise DidDocError(
            ErrorKind.INVALID_TYPE_CONVERSION, f"unknown proof purpose {purpose!r}"
        ) from ex


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def resolve_by_id(doc: "Document", key_id: str) -> VerificationMethod:
    """Return the first ``verificationMethod`` entry whose id is exactly ``key_id``.

    Entries stored as mappings (documents populated through ``set``) are
    coerced once their id matches; a malformed match raises CoercionError.
    Entries of any other type are passed over.
    """
    methods = doc.get(VERIFICATION_METHOD_KEY)
    if methods is None:
        raise NotFoundError(f"document has no {VERIFICATION_METHOD_KEY}", key_id)

    for i, entry in enumerate(_as_list(methods)):
        path = f"{VERIFICATION_METHOD_KEY}[{i}]"
        if isinstance(entry, VerificationMethod):
            method = entry
        elif isinstance(entry, Mapping):
            if entry.get("id") != key_id:
                continue
            method = coerce(entry, _VERIFICATION_METHOD, path=path)
        else:
            # not a verification method; cannot match
            continue
        if method.id == key_id:
            return method

    raise NotFoundError(f"no verification method with id {key_id!r}", key_id)


def resolve_by_purpose(doc: "Document", purpose: Union[ProofPurpose, str]) -> List[VerificationMethod]:
    """Resolve every verification method associated with ``purpose``."""
    purpose = _as_purpose(purpose)
    key = purpose.value

    relation = doc.get(key)
    if relation is None:
        raise NotFoundError(f"document has no {key}", key)

    resolved: List[VerificationMethod] = []
    for i, entry in enumerate(_as_list(relation)):
        path = f"{key}[{i}]"
        if isinstance(entry, str):
            try:
                resolved.append(resolve_by_id(doc, entry))
            except DidDocError:
                logger.debug(
                    "skipping unresolved reference %s in %s (possibly revoked)",
                    entry,
                    key,
                    extra=log_extra("resolve.skip", purpose=key, reference=entry),
                )
        elif isinstance(entry, VerificationMethod):
            resolved.append(entry)
        elif isinstance(entry, Mapping):
            resolved.append(coerce(entry, _VERIFICATION_METHOD, path=path))
        else:
            raise DidDocError(
                ErrorKind.INVALID_TYPE_CONVERSION,
                f"unexpected {type(entry).__name__} in {key}",
                path,
            )

    if not resolved:
        raise NotFoundError(f"no verification method resolved for {key}", key)
    return resolved


def resolve_all(doc: "Document") -> Dict[str, List[VerificationMethod]]:
    """Resolve every proof purpose present in the document.

    Purposes that resolve to nothing are left out.
    """
    out: Dict[str, List[VerificationMethod]] = {}
    for purpose in ProofPurpose:
        try:
            out[purpose.value] = resolve_by_purpose(doc, purpose)
        except NotFoundError:
            continue
    return out
