import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


def _generate_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _self_signed(key: rsa.RSAPrivateKey, common_name: str) -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


def _key_pem(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def pki(tmp_path_factory):
    """A self-signed device cert with CN dev-1, its key, and an unrelated key."""
    directory = tmp_path_factory.mktemp("pki")
    key = _generate_key()
    other_key = _generate_key()
    cert = _self_signed(key, "dev-1")
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)

    paths = {
        "cert": directory / "dev-1.x509",
        "key": directory / "dev-1.pem",
        "other_key": directory / "other.pem",
    }
    paths["cert"].write_bytes(cert_pem)
    paths["key"].write_bytes(_key_pem(key))
    paths["other_key"].write_bytes(_key_pem(other_key))

    return {
        "cert_path": str(paths["cert"]),
        "key_path": str(paths["key"]),
        "other_key_path": str(paths["other_key"]),
        "cert_pem": cert_pem,
        "cert": cert,
    }


@pytest.fixture
def roots_pem(pki) -> bytes:
    return pki["cert_pem"]
