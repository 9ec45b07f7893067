"""Key material adapter.

Turns the opaque key material of a ``VerificationMethod`` (``publicKeyJwk``
or ``publicKeyMultibase``) into ``cryptography`` public key objects so that
proof verification code can consume it. Nothing here checks signatures.

Supported material:
- JWK: OKP (Ed25519, X25519), EC (P-256, P-384, P-521, secp256k1)
- multibase base58btc (``z...``) with a multicodec prefix for
  ed25519-pub, x25519-pub, secp256k1-pub or p256-pub, or a bare 32-byte
  Ed25519 key
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, Mapping, Union

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PublicKey

from diddoc.errors import KeyMaterialError
from diddoc.types import VerificationMethod

PublicKey = Union[Ed25519PublicKey, X25519PublicKey, ec.EllipticCurvePublicKey]

# Base58 (bitcoin alphabet)
B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
B58_MAP = {c: i for i, c in enumerate(B58_ALPHABET)}

# multicodec varint prefixes
ED25519_PUB = bytes([0xED, 0x01])
X25519_PUB = bytes([0xEC, 0x01])
SECP256K1_PUB = bytes([0xE7, 0x01])
P256_PUB = bytes([0x80, 0x24])

_EC_CURVES: Dict[str, Any] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
    "secp256k1": ec.SECP256K1,
}


def b58decode(s: Union[str, bytes]) -> bytes:
    s_bytes = s.encode("ascii") if isinstance(s, str) else s
    num = 0
    for c in s_bytes:
        if c not in B58_MAP:
            raise ValueError("Invalid base58 character")
        num = num * 58 + B58_MAP[c]
    n_pad = 0
    for c in s_bytes:
        if c == B58_ALPHABET[0]:
            n_pad += 1
        else:
            break
    full = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * n_pad + full


def b58encode(b: bytes) -> str:
    n_pad = 0
    for c in b:
        if c == 0:
            n_pad += 1
        else:
            break
    num = int.from_bytes(b, "big")
    out = bytearray()
    while num > 0:
        num, rem = divmod(num, 58)
        out.append(B58_ALPHABET[rem])
    out.extend(B58_ALPHABET[0] for _ in range(n_pad))
    out.reverse()
    return out.decode("ascii")


def b64url_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    pad = "=" * ((4 - len(s) % 4) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("ascii"))


def multibase_decode(value: str) -> bytes:
    """Decode a base58btc multibase string (``z`` prefix)."""
    if not isinstance(value, str) or not value.startswith("z"):
        raise KeyMaterialError("only base58btc multibase ('z' prefix) is supported")
    try:
        return b58decode(value[1:])
    except ValueError as ex:
        raise KeyMaterialError(f"invalid multibase value: {ex}") from ex


def ed25519_multibase(pub: bytes) -> str:
    """Multibase (``z`` + base58btc) form of a raw Ed25519 public key."""
    return "z" + b58encode(ED25519_PUB + pub)


def did_key_from_ed25519_public_key(pub: bytes) -> str:
    return "did:key:" + ed25519_multibase(pub)


def _jwk_member(jwk: Mapping[str, Any], name: str) -> bytes:
    value = jwk.get(name)
    if not isinstance(value, str) or not value:
        raise KeyMaterialError(f"JWK is missing {name!r}", f"publicKeyJwk.{name}")
    try:
        return b64url_decode(value)
    except (binascii.Error, ValueError) as ex:
        raise KeyMaterialError(f"JWK member {name!r} is not base64url", f"publicKeyJwk.{name}") from ex


def public_key_from_jwk(jwk: Any) -> PublicKey:
    """Load a public key from a JWK mapping."""
    if not isinstance(jwk, Mapping):
        raise KeyMaterialError(f"publicKeyJwk must be an object, got {type(jwk).__name__}")

    kty = jwk.get("kty")
    crv = jwk.get("crv")
    try:
        if kty == "OKP":
            x = _jwk_member(jwk, "x")
            if crv == "Ed25519":
                return Ed25519PublicKey.from_public_bytes(x)
            if crv == "X25519":
                return X25519PublicKey.from_public_bytes(x)
        elif kty == "EC" and crv in _EC_CURVES:
            x = int.from_bytes(_jwk_member(jwk, "x"), "big")
            y = int.from_bytes(_jwk_member(jwk, "y"), "big")
            return ec.EllipticCurvePublicNumbers(x, y, _EC_CURVES[crv]()).public_key()
    except ValueError as ex:
        raise KeyMaterialError(f"invalid {kty}/{crv} key: {ex}") from ex
    raise KeyMaterialError(f"unsupported JWK kty={kty!r} crv={crv!r}")


def public_key_from_multibase(value: str) -> PublicKey:
    """Load a public key from a ``publicKeyMultibase`` value."""
    decoded = multibase_decode(value)
    try:
        if decoded.startswith(ED25519_PUB):
            return Ed25519PublicKey.from_public_bytes(decoded[2:])
        if decoded.startswith(X25519_PUB):
            return X25519PublicKey.from_public_bytes(decoded[2:])
        if decoded.startswith(SECP256K1_PUB):
            return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), decoded[2:])
        if decoded.startswith(P256_PUB):
            return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), decoded[2:])
        if len(decoded) == 32:
            # Ed25519VerificationKey2018-style raw key without multicodec header
            return Ed25519PublicKey.from_public_bytes(decoded)
    except ValueError as ex:
        raise KeyMaterialError(f"invalid multibase key: {ex}") from ex
    raise KeyMaterialError("multicodec prefix not recognized")


def public_key_from_verification_method(vm: VerificationMethod) -> PublicKey:
    """Load the public key carried by ``vm``; ``publicKeyJwk`` wins when both are set."""
    if vm.public_key_jwk is not None:
        return public_key_from_jwk(vm.public_key_jwk)
    if vm.public_key_multibase:
        return public_key_from_multibase(vm.public_key_multibase)
    raise KeyMaterialError(f"verification method {vm.id!r} carries no key material", vm.id)
