"""
Client identity and signing for gateway connections.

An `Identity` is an MSP id plus an X.509 certificate in PEM form; a `Signer`
turns a private key into a callable that signs proposal bytes. Both are
normally loaded from files supplied through settings; `ephemeral_identity`
generates a throwaway self-signed pair for local runs and tests.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.x509.oid import NameOID

from passport.network.msp import certificate_from_pem
from passport.utils.logging import get_logger

log = get_logger(__name__)

PrivateKey = Union[ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey]


@dataclass(frozen=True)
class Identity:
    msp_id: str
    credentials: bytes

    @property
    def certificate(self) -> x509.Certificate:
        return certificate_from_pem(self.credentials)


class Signer:
    """
    Sign messages with an EC (ECDSA/SHA-256) or RSA (PKCS#1 v1.5/SHA-256) key.
    """

    def __init__(self, private_key: PrivateKey) -> None:
        if not isinstance(private_key, (ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey)):
            raise TypeError(f"unsupported private key type: {type(private_key).__name__}")
        self._key = private_key

    def __call__(self, message: bytes) -> bytes:
        if isinstance(self._key, ec.EllipticCurvePrivateKey):
            return self._key.sign(message, ec.ECDSA(hashes.SHA256()))
        return self._key.sign(message, padding.PKCS1v15(), hashes.SHA256())


def load_identity(msp_id: str, cert_path: Path) -> Identity:
    """Read a PEM certificate and validate it parses."""
    pem = Path(cert_path).read_bytes()
    certificate_from_pem(pem)
    return Identity(msp_id=msp_id, credentials=pem)


def _resolve_key_file(key_path: Path) -> Path:
    # A keystore directory holds a single generated key file.
    if key_path.is_dir():
        files = sorted(p for p in key_path.iterdir() if p.is_file())
        if not files:
            raise FileNotFoundError(f"no private key found in {key_path}")
        return files[0]
    return key_path


def load_signer(key_path: Path) -> Signer:
    pem = _resolve_key_file(Path(key_path)).read_bytes()
    return Signer(serialization.load_pem_private_key(pem, password=None))


def ephemeral_identity(
    msp_id: str, common_name: str = "passport-client", valid_days: int = 1
) -> Tuple[Identity, Signer]:
    """Generate a self-signed P-256 certificate and its signer."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, msp_id),
        ]
    )
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=1))
        .not_valid_after(now + datetime.timedelta(days=valid_days))
        .sign(key, hashes.SHA256())
    )
    pem = certificate.public_bytes(serialization.Encoding.PEM)
    return Identity(msp_id=msp_id, credentials=pem), Signer(key)


def resolve_identity(
    msp_id: str, cert_path: Optional[Path], key_path: Optional[Path]
) -> Tuple[Identity, Signer]:
    """
    Load the configured identity, or fall back to an ephemeral one when no
    certificate and key are configured.
    """
    if cert_path is None and key_path is None:
        log.warning("No client certificate configured; using an ephemeral identity")
        return ephemeral_identity(msp_id)
    if cert_path is None or key_path is None:
        raise ValueError("CERT_PATH and KEY_PATH must be configured together")
    return load_identity(msp_id, cert_path), load_signer(key_path)


__all__ = [
    "Identity",
    "Signer",
    "load_identity",
    "load_signer",
    "ephemeral_identity",
    "resolve_identity",
]
