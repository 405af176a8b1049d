"""TLS key schedule, PRF, key agreement, session ticket and certificate helpers."""

__version__ = "0.1.0"

__all__ = ["certs", "common", "handshake", "key_agreement", "key_schedule", "prf", "ticket"]