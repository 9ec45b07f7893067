"""Typed records and constants of the DID Document data model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet

from diddoc.coerce import ANY, tagged

CONTEXT_KEY = "@context"
SUBJECT_KEY = "id"
ALSO_KNOWN_AS_KEY = "alsoKnownAs"
CONTROLLER_KEY = "controller"
VERIFICATION_METHOD_KEY = "verificationMethod"
AUTHENTICATION_KEY = "authentication"
ASSERTION_METHOD_KEY = "assertionMethod"
KEY_AGREEMENT_KEY = "keyAgreement"
CAPABILITY_INVOCATION_KEY = "capabilityInvocation"
CAPABILITY_DELEGATION_KEY = "capabilityDelegation"
SERVICE_KEY = "service"
PROOF_KEY = "proof"


class ProofPurpose(Enum):
    """Verification relationship selecting which methods to resolve."""
    AUTHENTICATION = "authentication"
    ASSERTION_METHOD = "assertionMethod"
    KEY_AGREEMENT = "keyAgreement"
    CAPABILITY_INVOCATION = "capabilityInvocation"
    CAPABILITY_DELEGATION = "capabilityDelegation"

    def __str__(self) -> str:
        return self.value


RELATIONSHIP_KEYS: FrozenSet[str] = frozenset(p.value for p in ProofPurpose)

WELL_KNOWN_KEYS: FrozenSet[str] = frozenset({
    CONTEXT_KEY,
    SUBJECT_KEY,
    ALSO_KNOWN_AS_KEY,
    CONTROLLER_KEY,
    VERIFICATION_METHOD_KEY,
    SERVICE_KEY,
}) | RELATIONSHIP_KEYS


@dataclass(frozen=True)
class DocumentMetadata:
    """DID document metadata; only the required ``deactivated`` flag."""
    deactivated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"deactivated": self.deactivated}


@dataclass(frozen=True)
class VerificationMethod:
    """A public key record.

    ``public_key_jwk`` is opaque and handed through untouched to whatever
    consumes the key; ``public_key_multibase`` is a multibase string. Either,
    both or neither may be set.
    """
    id: str = tagged("id")
    type: str = tagged("type")
    controller: str = tagged("controller")
    public_key_jwk: Any = tagged("publicKeyJwk", ANY, default=None)
    public_key_multibase: str = tagged("publicKeyMultibase")


@dataclass(frozen=True)
class Service:
    """A service endpoint advertised by the DID subject."""
    id: str = tagged("id", omit_empty=False)
    type: str = tagged("type", omit_empty=False)
    service_endpoint: str = tagged("serviceEndpoint", omit_empty=False)


@dataclass(frozen=True)
class Proof:
    """Data integrity proof attached to a document (``proof`` property)."""
    type: str = tagged("type")
    created: str = tagged("created")
    verification_method: str = tagged("verificationMethod")
    proof_purpose: str = tagged("proofPurpose")
    nonce: str = tagged("nonce")
    jws: str = tagged("jws")
