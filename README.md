# tlskit

Building blocks for TLS key derivation and handshake message handling:

- `tlskit.common`: client hello identifiers (`ClientHelloID`), certificate
  compression algorithms (`CertCompressionAlgo`) and the set of supported
  key-exchange groups (`is_supported_group`, `enable_vartime_groups`).
- `tlskit.key_schedule`: the TLS 1.3 key schedule (`CipherSuiteTLS13`, with
  HKDF-Expand-Label, Derive-Secret, traffic keys, Finished MACs and exporters),
  plus ephemeral ECDHE parameters for X25519 and the NIST curves
  (`generate_ecdhe_parameters`, `curve_for_curve_id`).
- `tlskit.prf`: the SSL 3.0, TLS 1.0/1.1 and TLS 1.2 pseudo-random functions,
  master secret and key block derivation, Finished hashes (`FinishedHash`) and
  RFC 5705 exported keying material (`ekm_from_master_secret`).
- `tlskit.key_agreement`: RSA and ECDHE key exchange (`RSAKeyAgreement`,
  `ECDHEKeyAgreement`) and the ServerKeyExchange hashing rules.
- `tlskit.ticket`: session state serialisation (`SessionState`) and session
  ticket encryption with rotating keys (`TicketKey`, `encrypt_ticket`,
  `decrypt_ticket`).
- `tlskit.handshake`: the compressed certificate message
  (`CompressedCertificateMsg`).
- `tlskit.certs`: loading PEM certificate and private key pairs
  (`x509_key_pair`, `load_x509_key_pair`, `parse_private_key`).

## Installation

```
pip install tlskit
```

## Examples

Derive TLS 1.2 connection keys from a pre-master secret:

```python
from tlskit.prf import master_from_pre_master_secret, keys_from_master_secret

VERSION_TLS12 = 0x0303
master = master_from_pre_master_secret(VERSION_TLS12, False, pre_master, client_random, server_random)
keys = keys_from_master_secret(VERSION_TLS12, False, master, client_random, server_random, 20, 16, 0)
```

Run the TLS 1.3 key schedule:

```python
from tlskit.key_schedule import CipherSuiteTLS13

suite = CipherSuiteTLS13(...)  # for example TLS_AES_128_GCM_SHA256
early = suite.extract(None, None)
key, iv = suite.traffic_key(traffic_secret)
```

Load a certificate and its key:

```python
from tlskit.certs import load_x509_key_pair

cert = load_x509_key_pair("server.crt", "server.key")
```

Errors are raised as exceptions: malformed messages, mismatched keys or
reserved exporter labels all raise rather than returning status values.

## Running the tests

```
pip install -e ".[test]"
pytest
```