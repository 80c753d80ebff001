"""Global pytest configuration and fixtures for all tests."""

import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from loguru import logger

from rdpbind.infrastructure.implementations.local import (
    LocalCertificateStore,
    LocalConfigurationStore,
)
from rdpbind.infrastructure.repositories import StoredCertificate
from rdpbind.services.certificate_binder import CertificateBinder

RDP_THUMBPRINT = "A1B2C3D4E5F6"
RDP_FRIENDLY_NAME = "RDP Certificate"


@pytest.fixture(scope="session", autouse=True)
def set_test_env_vars():
    """
    Set environment variables for testing.

    Keeps every test on the local provider so nothing ever reaches
    PowerShell or WinRM.
    """
    original_env = {}

    test_env_vars = {
        "INFRASTRUCTURE_PROVIDER": "local",
        "WINRM_HOST": "",
        "ATOMIC_APPLY": "false",
    }

    for key, value in test_env_vars.items():
        original_env[key] = os.environ.get(key)
        os.environ[key] = value

    yield

    for key, original_value in original_env.items():
        if original_value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original_value


@pytest.fixture
def machine_dir(tmp_path: Path) -> Path:
    """Directory of the local machine model."""
    machine = tmp_path / "machine"
    machine.mkdir()
    return machine


@pytest.fixture
def certificate_store(machine_dir: Path) -> LocalCertificateStore:
    """Local certificate store holding the RDP certificate."""
    store = LocalCertificateStore(base_dir=machine_dir)
    store.add_certificate(
        StoredCertificate(
            thumbprint=RDP_THUMBPRINT,
            friendly_name=RDP_FRIENDLY_NAME,
            subject="CN=rdp.example.org",
        )
    )
    return store


@pytest.fixture
def configuration_store(machine_dir: Path) -> LocalConfigurationStore:
    """Local configuration store with the default host layout."""
    return LocalConfigurationStore(base_dir=machine_dir)


@pytest.fixture
def binder(
    certificate_store: LocalCertificateStore,
    configuration_store: LocalConfigurationStore,
) -> CertificateBinder:
    """Binder wired to the local stores."""
    return CertificateBinder(certificate_store, configuration_store)


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def log_records():
    """Capture loguru (level, message) pairs emitted during a test."""
    records: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda m: records.append((m.record["level"].name, m.record["message"])),
        level="DEBUG",
    )
    yield records
    logger.remove(handler_id)


@pytest.fixture
def pem_certificate(tmp_path: Path) -> tuple[Path, x509.Certificate]:
    """Write a self-signed certificate to a PEM file."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "rdp.example.org")])
    now = datetime.now(UTC)

    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=90))
        .sign(private_key, hashes.SHA256())
    )

    pem_path = tmp_path / "rdp.pem"
    pem_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    return pem_path, cert
