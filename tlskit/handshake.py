"""Handshake messages for certificate compression (RFC 8879)."""

from __future__ import annotations

from dataclasses import dataclass

TYPE_COMPRESSED_CERTIFICATE = 25

_UINT24_MAX = 0xFFFFFF


class HandshakeMessageError(ValueError):
    """A handshake message cannot be encoded or decoded."""


@dataclass
class CompressedCertificateMsg:
    """A CompressedCertificate message; only read client-side, for server certificates."""

    algorithm: int = 0
    uncompressed_length: int = 0
    compressed_certificate_message: bytes = b""
    raw: bytes | None = None

    def marshal(self) -> bytes:
        """The message bytes; the raw form if known, otherwise encoded and cached."""
        if self.raw is not None:
            return self.raw
        payload = self.compressed_certificate_message
        if len(payload) > _UINT24_MAX or not 0 <= self.uncompressed_length <= _UINT24_MAX:
            raise HandshakeMessageError("tls: CompressedCertificate field too large")
        body = (
            (self.algorithm & 0xFFFF).to_bytes(2, "big")
            + self.uncompressed_length.to_bytes(3, "big")
            + len(payload).to_bytes(3, "big")
            + payload
        )
        if len(body) > _UINT24_MAX:
            raise HandshakeMessageError("tls: CompressedCertificate message too large")
        self.raw = bytes([TYPE_COMPRESSED_CERTIFICATE]) + len(body).to_bytes(3, "big") + body
        return self.raw

    @classmethod
    def unmarshal(cls, data: bytes) -> "CompressedCertificateMsg":
        """Decode a message including its 4-byte handshake header."""
        data = bytes(data)
        if len(data) < 4 + 2 + 3 + 3:
            raise HandshakeMessageError("tls: truncated CompressedCertificate message")
        algorithm = int.from_bytes(data[4:6], "big")
        uncompressed_length = int.from_bytes(data[6:9], "big")
        payload_len = int.from_bytes(data[9:12], "big")
        if len(data) - 12 < payload_len:
            raise HandshakeMessageError("tls: truncated CompressedCertificate message")
        return cls(
            algorithm=algorithm,
            uncompressed_length=uncompressed_length,
            compressed_certificate_message=data[12 : 12 + payload_len],
            raw=data,
        )