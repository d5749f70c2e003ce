"""
Membership helpers: X.509 parsing, signature verification, transaction ids.
"""

from __future__ import annotations

import hashlib

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa


def certificate_from_pem(pem: bytes) -> x509.Certificate:
    return x509.load_pem_x509_certificate(pem)


def verify_signature(certificate_pem: bytes, signature: bytes, message: bytes) -> bool:
    """
    Check `signature` over `message` with the certificate's public key.

    EC keys use ECDSA/SHA-256, RSA keys PKCS#1 v1.5/SHA-256; other key types
    never verify.
    """
    public_key = certificate_from_pem(certificate_pem).public_key()
    try:
        if isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        elif isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
        else:
            return False
    except InvalidSignature:
        return False
    return True


def transaction_id(nonce: bytes, creator: bytes) -> str:
    """Transaction id derived from the proposal nonce and the serialized creator."""
    return hashlib.sha256(nonce + creator).hexdigest()


__all__ = ["certificate_from_pem", "verify_signature", "transaction_id"]
