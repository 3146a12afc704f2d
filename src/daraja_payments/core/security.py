"""
Security credential generation for initiator-authenticated operations.

Reversal, B2C, B2B, balance and status requests carry a ``SecurityCredential``:
the initiator password encrypted with the public key from the M-Pesa
certificate published for the target environment.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Union

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import ConfigError

__all__ = ["encrypt_initiator_password", "load_certificate"]


def load_certificate(path: Union[str, Path]) -> x509.Certificate:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ConfigError(f"Cannot read certificate at {path}: {exc}") from exc
    return _parse_certificate(data)


def _parse_certificate(data: bytes) -> x509.Certificate:
    try:
        if b"-----BEGIN CERTIFICATE-----" in data:
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as exc:
        raise ConfigError("Certificate is neither valid PEM nor DER") from exc


def encrypt_initiator_password(
    password: str,
    certificate: Union[x509.Certificate, bytes],
) -> str:
    """
    Encrypt ``password`` with the certificate's RSA key (PKCS#1 v1.5).

    ``certificate`` may be a loaded certificate or its PEM/DER bytes. The
    result is base64 text ready for the ``SecurityCredential`` field.
    """
    if not password:
        raise ConfigError("Initiator password must not be empty")
    if isinstance(certificate, (bytes, bytearray)):
        certificate = _parse_certificate(bytes(certificate))

    public_key = certificate.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise ConfigError("Certificate does not carry an RSA public key")

    encrypted = public_key.encrypt(password.encode("utf-8"), padding.PKCS1v15())
    return base64.b64encode(encrypted).decode("ascii")
