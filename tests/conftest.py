import json
import logging
import os
import pathlib
import sys

import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import diddoc`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


# Compact, keys in wire order: decoding then re-encoding must reproduce it byte for byte.
FULL_DOCUMENT = (
    '{"@context":["https://www.w3.org/ns/did/v1","https://w3id.org/security/suites/ed25519-2020/v1"],'
    '"assertionMethod":[{"controller":"did:example:123","id":"did:example:123#z6MkiukuAuQAE8ozxvmahnQGzApvtW7KT5XXKfojjwbdEomY","publicKeyMultibase":"z5TVraf9itbKXrRvt2DSS95Gw4vqU3CHAdetoufdcKazA","type":"Ed25519VerificationKey2020"}],'
    '"authentication":[{"controller":"did:example:123","id":"did:example:123#z6MkecaLyHuYWkayBDLw5ihndj3T1m6zKTGqau3A51G7RBf3","publicKeyMultibase":"zAKJP3f7BD6W4iWEQ9jwndVTCBq8ua2Utt8EEjJ6Vxsf","type":"Ed25519VerificationKey2020"}],'
    '"capabilityDelegation":[{"controller":"did:example:123","id":"did:example:123#z6Mkw94ByR26zMSkNdCUi6FNRsWnc2DFEeDXyBGJ5KTzSWyi","publicKeyMultibase":"zHgo9PAmfeoxHG8Mn2XHXamxnnSwPpkyBHAMNF3VyXJCL","type":"Ed25519VerificationKey2020"}],'
    '"capabilityInvocation":[{"controller":"did:example:123","id":"did:example:123#z6MkhdmzFu659ZJ4XKj31vtEDmjvsi5yDZG5L7Caz63oP39k","publicKeyMultibase":"z4BWwfeqdp1obQptLLMvPNgBw48p7og1ie6Hf9p5nTpNN","type":"Ed25519VerificationKey2020"}],'
    '"controller":"did:example:123",'
    '"id":"did:example:456",'
    '"keyAgreement":[{"controller":"did:example:123","id":"did:example:123#z6MkhdmzFu6594633290c794224f1185955236fa7176eb","publicKeyMultibase":"z4BWwfeqdp1obQptLLMvPNgBw48p7og1ie6Hf9p5nTpNN","type":"Ed25519VerificationKey2020"}],'
    '"service":[{"id":"did:example:123#linked-domain","type":"LinkedDomains","serviceEndpoint":"https://bar.example.com"}],'
    '"verificationMethod":[{"id":"xyz","type":"EcdsaSecp256k1VerificationKey2019","controller":"did:example:123","publicKeyJwk":{"crv":"secp256k1","kid":"xyz","kty":"EC","x":"F5ZFqah38KdBiRl99LdADUxhum5n1yNFdvv5ngW5K24","y":"SA_fdWHQor_kCQkJETqJ4dwLENWY4ArOTEhd8R6nMVw"}}]}'
)

EMBEDDED_DOCUMENT = {
    "@context": ["https://www.w3.org/ns/did/v1", "https://w3id.org/security/suites/jws-2020/v1"],
    "id": "did:example:123456789abcdefghi",
    "verificationMethod": [
        {
            "id": "did:example:123#key-0",
            "type": "JsonWebKey2020",
            "controller": "did:example:123",
            "publicKeyJwk": {"kty": "OKP", "crv": "Ed25519", "x": "VCpo2LMLhn6iWku8MKvSLg2ZAoC-nlOyPVQaO3FxVeQ"},
        },
        {
            "id": "did:example:123#key-1",
            "type": "JsonWebKey2020",
            "controller": "did:example:123",
            "publicKeyJwk": {"kty": "OKP", "crv": "X25519", "x": "pE_mG098rdQjY3MKK2D5SUQ6ZOEW3a6Z6T7Z4SgnzCE"},
        },
    ],
    "authentication": [
        "did:example:123#key-1",
        {
            "id": "did:example:123456789abcdefghi#keys-2",
            "type": "Ed25519VerificationKey2020",
            "controller": "did:example:123456789abcdefghi",
            "publicKeyMultibase": "zH3C2AVvLMv6gmMNam3uVAjZpfkcJCwDwnZn6z3wXmqPV",
        },
    ],
}


@pytest.fixture
def full_document_bytes() -> bytes:
    return FULL_DOCUMENT.encode("utf-8")


@pytest.fixture
def embedded_document() -> dict:
    return json.loads(json.dumps(EMBEDDED_DOCUMENT))


@pytest.fixture(autouse=True)
def _isolated_config_and_logging(monkeypatch):
    """Each test starts from default configuration and an unconfigured logger."""
    from diddoc.config import get_config_manager

    for name in list(os.environ):
        if name.startswith("DIDDOC_"):
            monkeypatch.delenv(name, raising=False)

    mgr = get_config_manager()
    mgr.reset()

    def _reset_logger() -> None:
        logger = logging.getLogger("diddoc")
        for handler in list(logger.handlers):
            if getattr(handler, "_diddoc_managed", False):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    _reset_logger()
    yield
    mgr.reset()
    _reset_logger()
