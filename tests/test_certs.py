import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)
from cryptography.x509.oid import NameOID

from tlskit.certs import (
    Certificate,
    CertificateError,
    load_x509_key_pair,
    parse_private_key,
    x509_key_pair,
)


def _self_signed(key, algorithm):
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "test.example.com")])
    now = datetime.datetime(2020, 1, 1)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(1)
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, algorithm)
    )


def _key_pem(key, fmt=PrivateFormat.TraditionalOpenSSL):
    return key.private_bytes(Encoding.PEM, fmt, NoEncryption())


def _key_der(key, fmt):
    return key.private_bytes(Encoding.DER, fmt, NoEncryption())


@pytest.fixture(scope="module")
def rsa_pair():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key, _self_signed(key, hashes.SHA256())


@pytest.fixture(scope="module")
def ec_pair():
    key = ec.generate_private_key(ec.SECP256R1())
    return key, _self_signed(key, hashes.SHA256())


def test_rsa_pair_loads(rsa_pair):
    key, cert = rsa_pair
    result = x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(key))
    assert isinstance(result, Certificate)
    assert result.certificate == [cert.public_bytes(Encoding.DER)]
    assert result.private_key.private_numbers() == key.private_numbers()
    assert result.leaf is None


def test_ec_pair_loads(ec_pair):
    key, cert = ec_pair
    result = x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(key))
    assert result.certificate[0] == cert.public_bytes(Encoding.DER)
    assert result.private_key.private_numbers().private_value == key.private_numbers().private_value


def test_pkcs8_key_accepted(rsa_pair):
    key, cert = rsa_pair
    result = x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(key, PrivateFormat.PKCS8))
    assert result.private_key.private_numbers() == key.private_numbers()


def test_chain_keeps_order(rsa_pair, ec_pair):
    key, cert = rsa_pair
    _, other = ec_pair
    chain = b"leading text\n" + cert.public_bytes(Encoding.PEM) + other.public_bytes(Encoding.PEM)
    result = x509_key_pair(chain, _key_pem(key))
    assert result.certificate == [
        cert.public_bytes(Encoding.DER),
        other.public_bytes(Encoding.DER),
    ]


def test_key_after_other_blocks(rsa_pair):
    key, cert = rsa_pair
    key_input = cert.public_bytes(Encoding.PEM) + _key_pem(key)
    result = x509_key_pair(cert.public_bytes(Encoding.PEM), key_input)
    assert result.private_key.private_numbers() == key.private_numbers()


def test_no_pem_in_certificate_input(rsa_pair):
    key, _ = rsa_pair
    with pytest.raises(CertificateError, match="failed to find any PEM data in certificate input"):
        x509_key_pair(b"not pem", _key_pem(key))


def test_switched_inputs(rsa_pair):
    key, cert = rsa_pair
    with pytest.raises(CertificateError, match="PEM inputs may have been switched"):
        x509_key_pair(_key_pem(key), cert.public_bytes(Encoding.PEM))


def test_skipped_certificate_block_types(rsa_pair):
    key, _ = rsa_pair
    cert_input = _key_pem(key) + _key_pem(key, PrivateFormat.PKCS8)
    with pytest.raises(CertificateError) as info:
        x509_key_pair(cert_input, _key_pem(key))
    assert "[RSA PRIVATE KEY PRIVATE KEY]" in str(info.value)


def test_no_pem_in_key_input(rsa_pair):
    _, cert = rsa_pair
    with pytest.raises(CertificateError, match="failed to find any PEM data in key input"):
        x509_key_pair(cert.public_bytes(Encoding.PEM), b"")


def test_certificate_in_key_input(rsa_pair):
    _, cert = rsa_pair
    pem = cert.public_bytes(Encoding.PEM)
    with pytest.raises(CertificateError, match="found a certificate rather than a key"):
        x509_key_pair(pem, pem)


def test_key_type_mismatch(rsa_pair, ec_pair):
    _, cert = rsa_pair
    ec_key, _ = ec_pair
    with pytest.raises(CertificateError, match="private key type does not match public key type"):
        x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(ec_key))


def test_rsa_key_does_not_match(rsa_pair):
    _, cert = rsa_pair
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with pytest.raises(CertificateError, match="private key does not match public key"):
        x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(other))


def test_ec_key_does_not_match(ec_pair):
    _, cert = ec_pair
    other = ec.generate_private_key(ec.SECP256R1())
    with pytest.raises(CertificateError, match="private key does not match public key"):
        x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(other))


def test_unknown_public_key_algorithm(rsa_pair):
    rsa_key, _ = rsa_pair
    ed_key = ed25519.Ed25519PrivateKey.generate()
    cert = _self_signed(ed_key, None)
    with pytest.raises(CertificateError, match="unknown public key algorithm"):
        x509_key_pair(cert.public_bytes(Encoding.PEM), _key_pem(rsa_key))


@pytest.mark.parametrize(
    "fmt", [PrivateFormat.TraditionalOpenSSL, PrivateFormat.PKCS8]
)
def test_parse_private_key_rsa(rsa_pair, fmt):
    key, _ = rsa_pair
    parsed = parse_private_key(_key_der(key, fmt))
    assert parsed.private_numbers() == key.private_numbers()


@pytest.mark.parametrize(
    "fmt", [PrivateFormat.TraditionalOpenSSL, PrivateFormat.PKCS8]
)
def test_parse_private_key_ec(ec_pair, fmt):
    key, _ = ec_pair
    parsed = parse_private_key(_key_der(key, fmt))
    assert parsed.private_numbers().private_value == key.private_numbers().private_value


def test_parse_private_key_garbage():
    with pytest.raises(CertificateError, match="tls: failed to parse private key"):
        parse_private_key(b"\x00\x01\x02")


def test_parse_private_key_unknown_pkcs8_type():
    key = ed25519.Ed25519PrivateKey.generate()
    with pytest.raises(CertificateError, match="unknown private key type in PKCS#8 wrapping"):
        parse_private_key(_key_der(key, PrivateFormat.PKCS8))


def test_load_from_files(tmp_path, ec_pair):
    key, cert = ec_pair
    cert_file = tmp_path / "cert.pem"
    key_file = tmp_path / "key.pem"
    cert_file.write_bytes(cert.public_bytes(Encoding.PEM))
    key_file.write_bytes(_key_pem(key))
    result = load_x509_key_pair(cert_file, key_file)
    assert result.certificate == [cert.public_bytes(Encoding.DER)]


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_x509_key_pair(tmp_path / "missing.pem", tmp_path / "missing-key.pem")