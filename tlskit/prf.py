"""Pseudo-random functions, key derivation and Finished hashes for SSL 3.0 to TLS 1.2."""

from __future__ import annotations

import hashlib
import hmac
from typing import Callable

VERSION_SSL30 = 0x0300
VERSION_TLS10 = 0x0301
VERSION_TLS11 = 0x0302
VERSION_TLS12 = 0x0303
VERSION_TLS13 = 0x0304

SIGNATURE_PKCS1V15 = 225
SIGNATURE_RSAPSS = 226
SIGNATURE_ECDSA = 227

PKCS1_WITH_SHA1 = 0x0201
PKCS1_WITH_SHA256 = 0x0401
PKCS1_WITH_SHA384 = 0x0501
PKCS1_WITH_SHA512 = 0x0601
PSS_WITH_SHA256 = 0x0804
PSS_WITH_SHA384 = 0x0805
PSS_WITH_SHA512 = 0x0806
ECDSA_WITH_P256_AND_SHA256 = 0x0403
ECDSA_WITH_P384_AND_SHA384 = 0x0503
ECDSA_WITH_P521_AND_SHA512 = 0x0603
ECDSA_WITH_SHA1 = 0x0203

MASTER_SECRET_LENGTH = 48
FINISHED_VERIFY_LENGTH = 12

MASTER_SECRET_LABEL = b"master secret"
KEY_EXPANSION_LABEL = b"key expansion"
CLIENT_FINISHED_LABEL = b"client finished"
SERVER_FINISHED_LABEL = b"server finished"

SSL30_PAD1 = b"\x36" * 48
SSL30_PAD2 = b"\x5c" * 48
SSL3_CLIENT_FINISHED_MAGIC = b"\x43\x4c\x4e\x54"
SSL3_SERVER_FINISHED_MAGIC = b"\x53\x52\x56\x52"

# SSL 3.0 mixes in up to 11 label bytes, 16 output bytes per round.
_PRF30_MAX_LENGTH = 11 * 16

PRF = Callable[[bytes, bytes, bytes, int], bytes]
Exporter = Callable[[str, "bytes | None", int], bytes]

_RESERVED_EXPORTER_LABELS = frozenset(
    {"client finished", "server finished", "master secret", "key expansion"}
)


def split_pre_master_secret(secret: bytes) -> tuple[bytes, bytes]:
    """Split a pre-master secret in two halves, per RFC 4346, Section 5."""
    return secret[: (len(secret) + 1) // 2], secret[len(secret) // 2 :]


def p_hash(secret: bytes, seed: bytes, length: int, hash_name: str) -> bytes:
    """The P_hash function of RFC 4346, Section 5."""
    out = bytearray()
    a = hmac.new(secret, seed, hash_name).digest()
    while len(out) < length:
        out += hmac.new(secret, a + seed, hash_name).digest()
        a = hmac.new(secret, a, hash_name).digest()
    return bytes(out[:length])


def prf10(secret: bytes, label: bytes, seed: bytes, length: int) -> bytes:
    """The TLS 1.0 pseudo-random function, per RFC 2246, Section 5."""
    label_and_seed = label + seed
    s1, s2 = split_pre_master_secret(secret)
    md5_part = p_hash(s1, label_and_seed, length, "md5")
    sha1_part = p_hash(s2, label_and_seed, length, "sha1")
    return bytes(x ^ y for x, y in zip(md5_part, sha1_part))


def prf12(hash_name: str) -> PRF:
    """The TLS 1.2 pseudo-random function over the given hash, per RFC 5246, Section 5."""

    def prf(secret: bytes, label: bytes, seed: bytes, length: int) -> bytes:
        return p_hash(secret, label + seed, length, hash_name)

    return prf


def prf30(secret: bytes, label: bytes, seed: bytes, length: int) -> bytes:
    """The SSL 3.0 pseudo-random function; the label is not used."""
    if length > _PRF30_MAX_LENGTH:
        raise ValueError(f"tls: SSL 3.0 PRF output limited to {_PRF30_MAX_LENGTH} bytes")
    out = bytearray()
    i = 0
    while len(out) < length:
        prefix = bytes([ord("A") + i]) * (i + 1)
        digest = hashlib.sha1(prefix + secret + seed).digest()
        out += hashlib.md5(secret + digest).digest()
        i += 1
    return bytes(out[:length])


def prf_and_hash_for_version(version: int, sha384: bool) -> tuple[PRF, str | None]:
    """The PRF for a protocol version and, from TLS 1.2 on, the hash it uses."""
    if version == VERSION_SSL30:
        return prf30, None
    if version in (VERSION_TLS10, VERSION_TLS11):
        return prf10, None
    if version == VERSION_TLS12:
        hash_name = "sha384" if sha384 else "sha256"
        return prf12(hash_name), hash_name
    raise ValueError("unknown version")


def prf_for_version(version: int, sha384: bool) -> PRF:
    """The PRF for a protocol version."""
    return prf_and_hash_for_version(version, sha384)[0]


def master_from_pre_master_secret(
    version: int,
    sha384: bool,
    pre_master_secret: bytes,
    client_random: bytes,
    server_random: bytes,
) -> bytes:
    """The master secret, per RFC 5246, Section 8.1."""
    prf = prf_for_version(version, sha384)
    return prf(
        pre_master_secret, MASTER_SECRET_LABEL, client_random + server_random, MASTER_SECRET_LENGTH
    )


def keys_from_master_secret(
    version: int,
    sha384: bool,
    master_secret: bytes,
    client_random: bytes,
    server_random: bytes,
    mac_len: int,
    key_len: int,
    iv_len: int,
) -> tuple[bytes, bytes, bytes, bytes, bytes, bytes]:
    """Client/server MAC keys, cipher keys and IVs, per RFC 2246, Section 6.3."""
    prf = prf_for_version(version, sha384)
    total = 2 * mac_len + 2 * key_len + 2 * iv_len
    material = prf(master_secret, KEY_EXPANSION_LABEL, server_random + client_random, total)
    parts = []
    offset = 0
    for size in (mac_len, mac_len, key_len, key_len, iv_len, iv_len):
        parts.append(material[offset : offset + size])
        offset += size
    client_mac, server_mac, client_key, server_key, client_iv, server_iv = parts
    return client_mac, server_mac, client_key, server_key, client_iv, server_iv


_SCHEME_HASHES = {
    PKCS1_WITH_SHA1: "sha1",
    ECDSA_WITH_SHA1: "sha1",
    PKCS1_WITH_SHA256: "sha256",
    PSS_WITH_SHA256: "sha256",
    ECDSA_WITH_P256_AND_SHA256: "sha256",
    PKCS1_WITH_SHA384: "sha384",
    PSS_WITH_SHA384: "sha384",
    ECDSA_WITH_P384_AND_SHA384: "sha384",
    PKCS1_WITH_SHA512: "sha512",
    PSS_WITH_SHA512: "sha512",
    ECDSA_WITH_P521_AND_SHA512: "sha512",
}


def hash_from_signature_scheme(scheme: int) -> str:
    """The hash name used by a TLS signature scheme."""
    try:
        return _SCHEME_HASHES[scheme]
    except KeyError:
        raise ValueError(f"tls: unsupported signature algorithm: {scheme:#06x}") from None


def finished_sum30(md5_hash, sha1_hash, master_secret: bytes, magic: bytes) -> bytes:
    """SSL 3.0 Finished verify_data from running MD5 and SHA-1 handshake hashes.

    The given hash objects are left untouched.
    """
    inner = md5_hash.copy()
    inner.update(magic + master_secret + SSL30_PAD1)
    md5_digest = hashlib.md5(master_secret + SSL30_PAD2 + inner.digest()).digest()

    inner = sha1_hash.copy()
    inner.update(magic + master_secret + SSL30_PAD1[:40])
    sha1_digest = hashlib.sha1(master_secret + SSL30_PAD2[:40] + inner.digest()).digest()

    return md5_digest + sha1_digest


class FinishedHash:
    """Running hash of the handshake messages, for Finished messages and client certificates."""

    def __init__(self, version: int, sha384: bool = False):
        self.version = version
        self._prf, hash_name = prf_and_hash_for_version(version, sha384)
        # SSL 3.0 and TLS 1.2 need the whole transcript for client certificates.
        self.buffer: bytearray | None = (
            bytearray() if version == VERSION_SSL30 or version >= VERSION_TLS12 else None
        )
        if hash_name is not None:
            self._hash = hashlib.new(hash_name)
            self._md5 = None
        else:
            self._hash = hashlib.sha1()
            self._md5 = hashlib.md5()

    def write(self, msg: bytes) -> int:
        """Add a handshake message to the transcript."""
        self._hash.update(msg)
        if self._md5 is not None:
            self._md5.update(msg)
        if self.buffer is not None:
            self.buffer += msg
        return len(msg)

    def sum(self) -> bytes:
        """The transcript hash: the suite hash from TLS 1.2, MD5 followed by SHA-1 before."""
        if self._md5 is None:
            return self._hash.digest()
        return self._md5.digest() + self._hash.digest()

    def _verify_data(self, master_secret: bytes, label: bytes, magic: bytes) -> bytes:
        if self.version == VERSION_SSL30:
            return finished_sum30(self._md5, self._hash, master_secret, magic)
        return self._prf(master_secret, label, self.sum(), FINISHED_VERIFY_LENGTH)

    def client_sum(self, master_secret: bytes) -> bytes:
        """verify_data of the client's Finished message."""
        return self._verify_data(master_secret, CLIENT_FINISHED_LABEL, SSL3_CLIENT_FINISHED_MAGIC)

    def server_sum(self, master_secret: bytes) -> bytes:
        """verify_data of the server's Finished message."""
        return self._verify_data(master_secret, SERVER_FINISHED_LABEL, SSL3_SERVER_FINISHED_MAGIC)

    def hash_for_client_certificate(
        self, sig_type: int, hash_name: str | None, master_secret: bytes
    ) -> bytes:
        """A digest of the handshake so far, to be signed by a client certificate."""
        if (self.version == VERSION_SSL30 or self.version >= VERSION_TLS12) and self.buffer is None:
            raise RuntimeError(
                "a handshake hash for a client-certificate was requested after "
                "discarding the handshake buffer"
            )
        if self.version == VERSION_SSL30:
            if sig_type != SIGNATURE_PKCS1V15:
                raise ValueError("tls: unsupported signature type for client certificate")
            data = bytes(self.buffer)
            return finished_sum30(hashlib.md5(data), hashlib.sha1(data), master_secret, b"")
        if self.version >= VERSION_TLS12:
            return hashlib.new(hash_name, bytes(self.buffer)).digest()
        if sig_type == SIGNATURE_ECDSA:
            return self._hash.digest()
        return self.sum()

    def discard_handshake_buffer(self) -> None:
        """Stop keeping the full transcript."""
        self.buffer = None


def no_exported_keying_material(label: str, context: bytes | None, length: int) -> bytes:
    """An exporter that always fails, for connections with renegotiation enabled."""
    raise RuntimeError(
        "crypto/tls: ExportKeyingMaterial is unavailable when renegotiation is enabled"
    )


def ekm_from_master_secret(
    version: int,
    sha384: bool,
    master_secret: bytes,
    client_random: bytes,
    server_random: bytes,
) -> Exporter:
    """An RFC 5705 keying-material exporter bound to a master secret."""

    def exporter(label: str, context: bytes | None, length: int) -> bytes:
        if label in _RESERVED_EXPORTER_LABELS:
            raise ValueError(f"crypto/tls: reserved ExportKeyingMaterial label: {label}")
        seed = client_random + server_random
        if context is not None:
            if len(context) >= 1 << 16:
                raise ValueError("crypto/tls: ExportKeyingMaterial context too long")
            seed += len(context).to_bytes(2, "big") + context
        return prf_for_version(version, sha384)(master_secret, label.encode(), seed, length)

    return exporter