"""Loading certificate chains and matching private keys from PEM data."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass, field
from os import PathLike
from typing import Iterator, Union

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import load_der_private_key

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]

_PEM_BLOCK = re.compile(
    rb"^-----BEGIN ([^\r\n]*?)-----[ \t]*\r?\n(.*?)^-----END \1-----",
    re.DOTALL | re.MULTILINE,
)


class CertificateError(ValueError):
    """A certificate or private key cannot be loaded or does not match."""


@dataclass
class Certificate:
    """A DER certificate chain, leaf first, with the leaf's private key."""

    certificate: list[bytes] = field(default_factory=list)
    private_key: PrivateKey | None = None
    leaf: x509.Certificate | None = None


def _pem_body(body: bytes) -> bytes | None:
    lines = body.splitlines()
    # Encapsulated headers ("Key: value") end at the first blank line.
    if lines and b":" in lines[0]:
        try:
            blank = next(i for i, line in enumerate(lines) if not line.strip())
        except StopIteration:
            return None
        lines = lines[blank + 1 :]
    data = b"".join(line.strip() for line in lines)
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None


def _pem_blocks(data: bytes) -> Iterator[tuple[str, bytes]]:
    for match in _PEM_BLOCK.finditer(data):
        decoded = _pem_body(match.group(2))
        if decoded is not None:
            yield match.group(1).decode("latin-1"), decoded


def _type_list(types: list[str]) -> str:
    return "[" + " ".join(types) + "]"


def parse_private_key(der: bytes) -> PrivateKey:
    """Parse a PKCS#1 RSA, PKCS#8 or SEC 1 EC private key in DER form."""
    try:
        key = load_der_private_key(bytes(der), password=None)
    except (ValueError, TypeError):
        raise CertificateError("tls: failed to parse private key") from None
    except Exception:
        raise CertificateError("tls: failed to parse private key") from None
    if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise CertificateError("tls: found unknown private key type in PKCS#8 wrapping")
    return key


def x509_key_pair(cert_pem: bytes, key_pem: bytes) -> Certificate:
    """Parse a PEM certificate chain and its PEM private key, checking that they match."""
    cert = Certificate()
    skipped: list[str] = []
    for block_type, der in _pem_blocks(bytes(cert_pem)):
        if block_type == "CERTIFICATE":
            cert.certificate.append(der)
        else:
            skipped.append(block_type)

    if not cert.certificate:
        if not skipped:
            raise CertificateError("tls: failed to find any PEM data in certificate input")
        if len(skipped) == 1 and skipped[0].endswith("PRIVATE KEY"):
            raise CertificateError(
                "tls: failed to find certificate PEM data in certificate input, "
                "but did find a private key; PEM inputs may have been switched"
            )
        raise CertificateError(
            'tls: failed to find "CERTIFICATE" PEM block in certificate input after '
            f"skipping PEM blocks of the following types: {_type_list(skipped)}"
        )

    skipped = []
    key_der = None
    for block_type, der in _pem_blocks(bytes(key_pem)):
        if block_type == "PRIVATE KEY" or block_type.endswith(" PRIVATE KEY"):
            key_der = der
            break
        skipped.append(block_type)
    if key_der is None:
        if not skipped:
            raise CertificateError("tls: failed to find any PEM data in key input")
        if len(skipped) == 1 and skipped[0] == "CERTIFICATE":
            raise CertificateError(
                "tls: found a certificate rather than a key in the PEM for the private key"
            )
        raise CertificateError(
            'tls: failed to find PEM block with type ending in "PRIVATE KEY" in key input '
            f"after skipping PEM blocks of the following types: {_type_list(skipped)}"
        )

    try:
        parsed = x509.load_der_x509_certificate(cert.certificate[0])
        public = parsed.public_key()
    except ValueError as exc:
        raise CertificateError(str(exc)) from exc

    cert.private_key = parse_private_key(key_der)
    private = cert.private_key

    if isinstance(public, rsa.RSAPublicKey):
        if not isinstance(private, rsa.RSAPrivateKey):
            raise CertificateError("tls: private key type does not match public key type")
        if public.public_numbers().n != private.public_key().public_numbers().n:
            raise CertificateError("tls: private key does not match public key")
    elif isinstance(public, ec.EllipticCurvePublicKey):
        if not isinstance(private, ec.EllipticCurvePrivateKey):
            raise CertificateError("tls: private key type does not match public key type")
        pub = public.public_numbers()
        priv = private.public_key().public_numbers()
        if pub.x != priv.x or pub.y != priv.y:
            raise CertificateError("tls: private key does not match public key")
    else:
        raise CertificateError("tls: unknown public key algorithm")

    return cert


def load_x509_key_pair(
    cert_file: str | PathLike[str], key_file: str | PathLike[str]
) -> Certificate:
    """Read a PEM certificate chain and private key from files and parse them."""
    with open(cert_file, "rb") as f:
        cert_pem = f.read()
    with open(key_file, "rb") as f:
        key_pem = f.read()
    return x509_key_pair(cert_pem, key_pem)