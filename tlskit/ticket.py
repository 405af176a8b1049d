"""Session state serialisation and encrypted session tickets."""

from __future__ import annotations

import hashlib
import hmac
import os
from dataclasses import dataclass, field
from typing import Sequence

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

TICKET_KEY_NAME_LEN = 16
AES_BLOCK_SIZE = 16
MAC_SIZE = hashlib.sha256().digest_size

_MIN_TICKET_LEN = TICKET_KEY_NAME_LEN + AES_BLOCK_SIZE + MAC_SIZE


class TicketError(ValueError):
    """A session state or ticket cannot be encoded or decoded."""


@dataclass
class SessionState:
    """What a pre-TLS 1.3 session ticket carries in order to resume a connection."""

    vers: int
    cipher_suite: int
    master_secret: bytes
    certificates: list[bytes] = field(default_factory=list)
    # True if the ticket was encrypted with an older key and should be refreshed.
    used_old_key: bool = False

    def marshal(self) -> bytes:
        """Encode the state in its ticket wire form."""
        if len(self.master_secret) > 0xFFFF:
            raise TicketError("tls: master secret too long for a session ticket")
        if len(self.certificates) > 0xFFFF:
            raise TicketError("tls: too many certificates for a session ticket")
        out = bytearray()
        out += (self.vers & 0xFFFF).to_bytes(2, "big")
        out += (self.cipher_suite & 0xFFFF).to_bytes(2, "big")
        out += len(self.master_secret).to_bytes(2, "big")
        out += self.master_secret
        out += len(self.certificates).to_bytes(2, "big")
        for cert in self.certificates:
            if len(cert) > 0xFFFFFFFF:
                raise TicketError("tls: certificate too long for a session ticket")
            out += len(cert).to_bytes(4, "big")
            out += cert
        return bytes(out)

    @classmethod
    def unmarshal(cls, data: bytes) -> "SessionState":
        """Decode a state from its ticket wire form; raise TicketError if malformed."""
        data = bytes(data)
        if len(data) < 8:
            raise TicketError("tls: session state too short")

        vers = int.from_bytes(data[0:2], "big")
        cipher_suite = int.from_bytes(data[2:4], "big")
        secret_len = int.from_bytes(data[4:6], "big")
        pos = 6
        if len(data) - pos < secret_len:
            raise TicketError("tls: truncated master secret in session state")
        master_secret = data[pos : pos + secret_len]
        pos += secret_len

        if len(data) - pos < 2:
            raise TicketError("tls: truncated certificate count in session state")
        num_certs = int.from_bytes(data[pos : pos + 2], "big")
        pos += 2

        certificates = []
        for _ in range(num_certs):
            if len(data) - pos < 4:
                raise TicketError("tls: truncated certificate length in session state")
            cert_len = int.from_bytes(data[pos : pos + 4], "big")
            pos += 4
            if len(data) - pos < cert_len:
                raise TicketError("tls: truncated certificate in session state")
            certificates.append(data[pos : pos + cert_len])
            pos += cert_len

        if pos != len(data):
            raise TicketError("tls: trailing data in session state")
        return cls(vers, cipher_suite, master_secret, certificates)


@dataclass(frozen=True)
class TicketKey:
    """A key used to protect session tickets: its name, AES key and HMAC key."""

    key_name: bytes
    aes_key: bytes
    hmac_key: bytes

    def __post_init__(self) -> None:
        if len(self.key_name) != TICKET_KEY_NAME_LEN:
            raise TicketError(f"tls: ticket key name must be {TICKET_KEY_NAME_LEN} bytes")
        if len(self.aes_key) not in (16, 24, 32):
            raise TicketError("tls: invalid AES key size for ticket key")

    def _mac(self, data: bytes) -> bytes:
        return hmac.new(self.hmac_key, data, hashlib.sha256).digest()

    def _ctr(self, iv: bytes, data: bytes) -> bytes:
        crypter = Cipher(algorithms.AES(self.aes_key), modes.CTR(iv)).encryptor()
        return crypter.update(data) + crypter.finalize()


def encrypt_ticket(state: bytes, keys: Sequence[TicketKey]) -> bytes:
    """Encrypt and authenticate a serialised state with the first key."""
    if not keys:
        raise TicketError("tls: no session ticket keys available")
    key = keys[0]
    iv = os.urandom(AES_BLOCK_SIZE)
    body = key.key_name + iv + key._ctr(iv, bytes(state))
    return body + key._mac(body)


def decrypt_ticket(encrypted: bytes, keys: Sequence[TicketKey]) -> tuple[bytes, bool] | None:
    """Decrypt a ticket made by encrypt_ticket.

    Returns the plaintext and whether a key other than the first was used, or
    None if the ticket is too short, names no known key or fails authentication.
    """
    encrypted = bytes(encrypted)
    if len(encrypted) < _MIN_TICKET_LEN:
        return None

    key_name = encrypted[:TICKET_KEY_NAME_LEN]
    iv = encrypted[TICKET_KEY_NAME_LEN : TICKET_KEY_NAME_LEN + AES_BLOCK_SIZE]
    mac_bytes = encrypted[-MAC_SIZE:]
    ciphertext = encrypted[TICKET_KEY_NAME_LEN + AES_BLOCK_SIZE : -MAC_SIZE]

    found = next(
        ((index, key) for index, key in enumerate(keys) if key.key_name == key_name), None
    )
    if found is None:
        return None
    index, key = found

    if not hmac.compare_digest(mac_bytes, key._mac(encrypted[:-MAC_SIZE])):
        return None
    return key._ctr(iv, ciphertext), index > 0