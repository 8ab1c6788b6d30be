import base64
import binascii
import logging
import re
import ssl
from typing import IO, List, Optional, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from .errors import ConfigError, DecodeError, IoTHubError, NotFoundError, ParseError

logger = logging.getLogger(__name__)

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----[ \t]*\r?\n(.*?)-----END \1-----", re.DOTALL
)


def _pem_blocks(data: bytes):
    """Yield (type, der_bytes) for each PEM block in data.

    der_bytes is None when the block body is not valid base64.
    """
    for match in _PEM_BLOCK.finditer(data):
        block_type = match.group(1).decode("ascii")
        lines = match.group(2).splitlines()
        # Skip RFC 1421 headers ("Proc-Type: ...") if present
        body = b"".join(line.strip() for line in lines if b":" not in line)
        try:
            der = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            der = None
        yield block_type, der


def _first_pem_block(data: bytes) -> Optional[Tuple[str, bytes]]:
    """Return the first block whose body decodes, skipping malformed ones."""
    return next(((t, der) for t, der in _pem_blocks(data) if der is not None), None)


def device_id_from_cert(cert_path: str) -> str:
    """Get the Common Name from an X.509 cert, which is considered to be the device ID."""
    try:
        with open(cert_path, "rb") as f:
            cert_bytes = f.read()
    except FileNotFoundError as err:
        raise NotFoundError(cert_path, "cert file") from err
    except OSError as err:
        raise IoTHubError(f"iothub: failed to read cert: {err}") from err

    block = _first_pem_block(cert_bytes)
    if block is None or block[0] != "CERTIFICATE":
        raise DecodeError()

    try:
        cert = x509.load_der_x509_certificate(block[1])
    except ValueError as err:
        raise ParseError(f"failed to parse certificate: {err}") from err

    common_names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not common_names:
        return ""
    # The last CN wins when the subject carries several
    return common_names[-1].value


def load_ca_certs(source: IO) -> List[x509.Certificate]:
    """Read every PEM certificate from source into a trust pool.

    Blocks that are not certificates, or that fail to parse, are skipped.
    """
    try:
        pem_certs: Union[str, bytes] = source.read()
    except (OSError, ValueError) as err:
        raise ConfigError(f"failed to read CA certs: {err}") from err

    if isinstance(pem_certs, str):
        pem_certs = pem_certs.encode("ascii", errors="replace")

    pool = []
    for block_type, der in _pem_blocks(pem_certs):
        if block_type != "CERTIFICATE" or der is None:
            continue
        try:
            pool.append(x509.load_der_x509_certificate(der))
        except ValueError:
            logger.debug("Skipping unparseable CA certificate")
            continue

    if not pool:
        raise ConfigError("no certs were parsed from given CA certs")

    logger.debug(f"Loaded {len(pool)} CA certs")
    return pool


def new_tls_context(
    ca_certs: List[x509.Certificate], cert_path: str, key_path: str
) -> ssl.SSLContext:
    """Build a client TLS context pinned to ca_certs that presents the device's cert/key pair."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.verify_mode = ssl.CERT_REQUIRED
    context.check_hostname = True

    cadata = "".join(
        cert.public_bytes(serialization.Encoding.PEM).decode("ascii")
        for cert in ca_certs
    )
    try:
        context.load_verify_locations(cadata=cadata)
    except (ssl.SSLError, ValueError) as err:
        raise ConfigError(f"failed to load CA certs: {err}") from err

    # Import client certificate/key pair
    try:
        context.load_cert_chain(certfile=cert_path, keyfile=key_path)
    except FileNotFoundError as err:
        raise NotFoundError(err.filename or f"{cert_path}, {key_path}") from err
    except (ssl.SSLError, OSError, ValueError) as err:
        raise ConfigError(f"failed to load x509 key pair: {err}") from err

    return context
