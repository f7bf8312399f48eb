"""Test fixtures for certgen tests."""

import subprocess
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from certgen.lib.assembler import ArtifactAssembler
from certgen.lib.backend import CryptographyBackend
from certgen.lib.config import CertgenConfig
from certgen.lib.dh_groups import group_parameters, serialize_dh_parameters
from certgen.lib.generator import CertGenerator
from certgen.lib.models import GenerationRequest, Mode, SubjectAltNameSet
from certgen.lib.template import render_template

TEMPLATE_SOURCE = Path(__file__).resolve().parents[1] / "templates" / "ssleay.cnf"


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    """Copy the packaged template into a temporary directory."""
    path = tmp_path / "ssleay.cnf"
    path.write_text(TEMPLATE_SOURCE.read_text())
    return path


@pytest.fixture
def certgen_config(tmp_path: Path, template_path: Path) -> CertgenConfig:
    """Return config with well-known directories under tmp_path."""
    certs_dir = tmp_path / "certs"
    private_dir = tmp_path / "private"
    certs_dir.mkdir()
    private_dir.mkdir()
    return CertgenConfig(
        certs_dir=certs_dir,
        private_dir=private_dir,
        template_path=template_path,
        rehash_command=("true",),
    )


@pytest.fixture
def no_host_lookups() -> Iterator[None]:
    """Pin local identity and interface lookups to fixed values."""
    with (
        patch("certgen.lib.san.local_identity", return_value="host.example.test"),
        patch("certgen.lib.san.local_addresses", return_value=["192.0.2.10"]),
    ):
        yield


@pytest.fixture
def make_request(certgen_config: CertgenConfig):
    """Return factory for GenerationRequest with test defaults."""

    def _make(mode: Mode = Mode.DEFAULT, **overrides) -> GenerationRequest:
        fields = {
            "mode": mode,
            "names": ("www.example.test",),
            "expiry_days": 30,
            "dh_bits": 2048,
            "template_path": certgen_config.template_path,
        }
        fields.update(overrides)
        return GenerationRequest(**fields)

    return _make


@pytest.fixture
def rendered_template() -> str:
    """Return packaged template rendered for www.example.test."""
    sans = SubjectAltNameSet()
    sans.add_dns("www.example.test")
    sans.add_dns("example.test")
    sans.add_ip("127.0.0.1")
    return render_template(TEMPLATE_SOURCE.read_text(), "www.example.test", sans)


@pytest.fixture(scope="session")
def issued_pair() -> tuple[bytes, bytes]:
    """Issue one real certificate and key for tests that only need valid PEM."""
    sans = SubjectAltNameSet()
    sans.add_dns("www.example.test")
    template = render_template(TEMPLATE_SOURCE.read_text(), "www.example.test", sans)
    return CryptographyBackend().issue_certificate(template, 30)


@pytest.fixture(scope="session")
def dh_pem() -> bytes:
    """Return PEM DH parameters of the 2048-bit named group."""
    return serialize_dh_parameters(group_parameters(2048))


@pytest.fixture
def mock_backend(issued_pair: tuple[bytes, bytes], dh_pem: bytes) -> MagicMock:
    """Return backend mock answering every operation with valid PEM."""
    backend = MagicMock()
    backend.issue_certificate.return_value = issued_pair
    backend.issue_csr.return_value = (
        b"-----BEGIN CERTIFICATE REQUEST-----\ncsr\n-----END CERTIFICATE REQUEST-----\n"
    )
    backend.generate_dh_params.return_value = dh_pem
    return backend


@pytest.fixture
def mock_runner() -> MagicMock:
    """Return subprocess.run stand-in reporting success."""
    runner = MagicMock()
    runner.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
    return runner


@pytest.fixture
def assembler(mock_runner: MagicMock) -> ArtifactAssembler:
    """Return assembler with the rehash command stubbed out."""
    return ArtifactAssembler(rehash_command=("openssl", "rehash"), runner=mock_runner)


@pytest.fixture
def generator(mock_backend: MagicMock, assembler: ArtifactAssembler) -> CertGenerator:
    """Return generator wired to the mocked backend and rehash runner."""
    return CertGenerator(backend=mock_backend, assembler=assembler)
