"""Tests for DocumentBuilder."""

import logging

import pytest

from diddoc.builder import KEY_SHAPES, DocumentBuilder, build_document
from diddoc.document import Document
from diddoc.errors import BuildError, CoercionError, DidDocError, ErrorKind
from diddoc.types import WELL_KNOWN_KEYS, Service, VerificationMethod

CONTEXTS = ["https://www.w3.org/ns/did/v1", "https://w3id.org/security/suites/ed25519-2020/v1"]

P256_JWK = {
    "crv": "P-256",
    "kid": "did:example:123#4d98ef1d2c5947a586b2226b200ade72",
    "kty": "EC",
    "x": "nAyQZC6WAvSqnttlft7YOJrqmJx47t3-6l97XQfAGlU",
    "y": "OWcile-qNKOsmXUsUDdYTwn39lvA_Qiml5gFMGaFraQ",
}


@pytest.mark.parametrize(
    "value,expected",
    [
        (CONTEXTS, CONTEXTS),
        (tuple(CONTEXTS), CONTEXTS),
        ("https://www.w3.org/ns/did/v1", ["https://www.w3.org/ns/did/v1"]),
        (b"https://www.w3.org/ns/did/v1", ["https://www.w3.org/ns/did/v1"]),
    ],
    ids=["list", "tuple", "string", "bytes"],
)
def test_context_normalized_to_string_list(value, expected):
    doc = DocumentBuilder().context(value).build()
    assert doc.context() == expected
    assert isinstance(doc.context(), list)


@pytest.mark.parametrize(
    "value,expected",
    [("stringvalue", "stringvalue"), (b"bytevalue", "bytevalue"), (True, "true")],
    ids=["string", "bytes", "bool"],
)
def test_subject_coerced_to_string(value, expected):
    doc = DocumentBuilder().subject(value).build()
    assert doc.subject() == expected
    assert isinstance(doc.subject(), str)


class TestVerificationMethods:
    def test_record_input(self):
        vm = VerificationMethod(
            id=P256_JWK["kid"],
            type="JsonWebKey2020",
            controller="did:example:123",
            public_key_jwk=P256_JWK,
        )
        doc = DocumentBuilder().verification_method(vm).build()
        assert doc.verification_method() == [vm]

    def test_mapping_input(self):
        doc = DocumentBuilder().verification_method({
            "id": P256_JWK["kid"],
            "type": "JsonWebKey2020",
            "controller": "did:example:123",
            "publicKeyJwk": P256_JWK,
        }).build()
        assert doc.verification_method() == [
            VerificationMethod(
                id=P256_JWK["kid"],
                type="JsonWebKey2020",
                controller="did:example:123",
                public_key_jwk=P256_JWK,
            )
        ]

    def test_scalar_rejected(self):
        with pytest.raises(CoercionError) as exc:
            DocumentBuilder().verification_method("did:example:123#key-1")
        assert exc.value.kind == ErrorKind.STRUCT_MISMATCH
        assert exc.value.path == "verificationMethod[0]"


def test_relationship_kept_verbatim():
    relation = [
        {"id": P256_JWK["kid"], "type": "JsonWebKey2020", "controller": "did:example:123", "publicKeyJwk": P256_JWK},
        "did:example:123456789abcdefghi#keys-1",
    ]
    doc = DocumentBuilder().assertion_method(relation).build()
    assert doc.assertion_method() == relation


def test_single_relationship_reference_wrapped():
    doc = DocumentBuilder().key_agreement("did:example:1#k").build()
    assert doc.key_agreement() == ["did:example:1#k"]


class TestServices:
    def test_record_input(self):
        svc = Service(id="did:example:123#linked-domain", type="LinkedDomains", service_endpoint="https://bar.example.com")
        doc = DocumentBuilder().service(svc).build()
        assert doc.services() == [svc]

    def test_mapping_input(self):
        doc = DocumentBuilder().service({
            "id": "did:example:123#linked-domain",
            "type": "LinkedDomains",
            "serviceEndpoint": "https://bar.example.com",
        }).build()
        assert doc.services() == [
            Service(id="did:example:123#linked-domain", type="LinkedDomains", service_endpoint="https://bar.example.com")
        ]


@pytest.mark.parametrize(
    "value",
    [True, 3.44, {"float": 3.44, "bool": False, "int": 2000}],
    ids=["bool", "float", "map"],
)
def test_custom_property_stored_as_given(value):
    doc = DocumentBuilder().custom_property("test", value).build()
    assert doc.get("test") == value
    assert type(doc.get("test")) is type(value)


def test_none_values_skipped():
    doc = DocumentBuilder().subject("did:example:1").controller(None).custom_property("x", None).build()
    assert doc.keys() == ["id"]


def test_fluent_order_preserved():
    doc = (
        DocumentBuilder()
        .subject("did:example:1")
        .custom_property("z", 1)
        .context(CONTEXTS)
        .also_known_as("https://alias.example")
        .capability_invocation("did:example:1#k")
        .capability_delegation("did:example:1#k")
        .authentication("did:example:1#k")
        .build()
    )
    assert doc.keys() == [
        "id", "z", "@context", "alsoKnownAs", "capabilityInvocation", "capabilityDelegation", "authentication",
    ]
    assert doc.frozen


def test_add_dispatches_well_known_keys():
    builder = DocumentBuilder()
    builder.add("controller", "did:example:9").add("custom", "did:example:9")
    doc = builder.build()
    assert doc.controller() == ["did:example:9"]
    assert doc.get("custom") == "did:example:9"


def test_key_shapes_cover_well_known_keys():
    assert set(KEY_SHAPES) == set(WELL_KNOWN_KEYS)


def test_max_depth_override():
    with pytest.raises(CoercionError) as exc:
        DocumentBuilder(max_depth=0).verification_method([{"id": "k"}])
    assert exc.value.kind == ErrorKind.TOO_DEEP


def test_build_error_keeps_partial_document():
    builder = DocumentBuilder().subject("did:example:1").custom_property(7, "bad").custom_property("after", 1)
    with pytest.raises(BuildError) as exc:
        builder.build()
    err = exc.value
    assert err.kind == ErrorKind.INVALID_KEY
    assert err.key == 7
    assert err.cause.kind == ErrorKind.INVALID_KEY
    assert isinstance(err.document, Document)
    assert err.document.keys() == ["id"]
    assert not err.document.frozen


def test_build_is_repeatable():
    builder = DocumentBuilder().subject("did:example:1")
    first = builder.build()
    second = builder.build()
    assert first == second
    assert first is not second


def test_build_document_from_mapping(embedded_document):
    doc = build_document(embedded_document)
    assert doc.subject() == "did:example:123456789abcdefghi"
    assert len(doc.verification_method()) == 2
    assert isinstance(doc.authentication()[1], dict)


def test_document_builder_classmethod():
    assert isinstance(Document.builder(), DocumentBuilder)


def test_rejected_property_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="diddoc")
    with pytest.raises(DidDocError):
        DocumentBuilder().subject(12)
    assert any("rejected property id" in r.getMessage() for r in caplog.records)
