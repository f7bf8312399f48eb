"""Tests for CertGenerator end-to-end runs."""

import stat
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from certgen.lib.backend import CryptographyBackend
from certgen.lib.cert_utils import deserialize_certificate, get_subject_alt_names
from certgen.lib.config import CertgenConfig
from certgen.lib.errors import BackendError, BackendFailure, MissingPrerequisite, WouldOverwrite
from certgen.lib.generator import CertGenerator
from certgen.lib.models import Mode
from certgen.lib.plan import resolve_plan


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


pytestmark = pytest.mark.usefixtures("no_host_lookups")


class TestDefaultMode:
    """Tests for default snakeoil generation."""

    def test_writes_all_artifacts(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_runner: MagicMock,
        issued_pair: tuple[bytes, bytes],
        dh_pem: bytes,
    ) -> None:
        plan = resolve_plan(make_request(Mode.DEFAULT), certgen_config)

        result = generator.generate(plan)

        cert_pem, key_pem = issued_pair
        assert certgen_config.default_cert_path.read_bytes() == cert_pem
        assert certgen_config.default_key_path.read_bytes() == key_pem
        assert certgen_config.dh_params_path.read_bytes() == dh_pem
        assert certgen_config.combined_pem_path.read_bytes() == cert_pem + key_pem + dh_pem
        assert result.written == [
            certgen_config.default_key_path,
            certgen_config.default_cert_path,
            certgen_config.dh_params_path,
            certgen_config.combined_pem_path,
        ]
        assert result.rehashed
        mock_runner.assert_called_once()

    def test_permissions(
        self, certgen_config: CertgenConfig, make_request, generator: CertGenerator
    ) -> None:
        generator.generate(resolve_plan(make_request(Mode.DEFAULT), certgen_config))

        assert _mode(certgen_config.default_cert_path) == 0o644
        assert _mode(certgen_config.default_key_path) == 0o400
        assert _mode(certgen_config.dh_params_path) == 0o400
        assert _mode(certgen_config.combined_pem_path) == 0o400

    def test_existing_dh_params_reused(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
        dh_pem: bytes,
    ) -> None:
        certgen_config.dh_params_path.write_bytes(dh_pem)

        generator.generate(resolve_plan(make_request(Mode.DEFAULT), certgen_config))

        mock_backend.generate_dh_params.assert_not_called()
        assert certgen_config.combined_pem_path.read_bytes().endswith(dh_pem)

    def test_csr_written_with_key(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
        issued_pair: tuple[bytes, bytes],
    ) -> None:
        plan = resolve_plan(make_request(Mode.DEFAULT, emit_csr=True), certgen_config)

        generator.generate(plan)

        mock_backend.issue_csr.assert_called_once_with(plan.template, issued_pair[1])
        assert _mode(certgen_config.default_csr_path) == 0o600


class TestOverwriteGuard:
    """Tests for the guard applied before any write."""

    def test_existing_cert_blocks_run(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
    ) -> None:
        certgen_config.default_cert_path.write_bytes(b"existing")
        plan = resolve_plan(make_request(Mode.DEFAULT), certgen_config)

        with pytest.raises(WouldOverwrite) as exc_info:
            generator.generate(plan)

        assert exc_info.value.paths == (certgen_config.default_cert_path,)
        assert certgen_config.default_cert_path.read_bytes() == b"existing"
        assert not certgen_config.default_key_path.exists()
        mock_backend.issue_certificate.assert_not_called()

    def test_force_replaces(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        issued_pair: tuple[bytes, bytes],
    ) -> None:
        certgen_config.default_cert_path.write_bytes(b"existing")
        certgen_config.default_key_path.write_bytes(b"existing")
        plan = resolve_plan(make_request(Mode.DEFAULT, force_overwrite=True), certgen_config)

        generator.generate(plan)

        assert certgen_config.default_cert_path.read_bytes() == issued_pair[0]

    def test_dh_only_requires_pair(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
    ) -> None:
        plan = resolve_plan(make_request(Mode.DH_PARAMS_ONLY), certgen_config)

        with pytest.raises(MissingPrerequisite):
            generator.generate(plan)

        mock_backend.generate_dh_params.assert_not_called()
        assert not certgen_config.dh_params_path.exists()


class TestDhParamsOnly:
    """Tests for DH-params-only regeneration."""

    def test_regenerates_dh_and_bundle(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
        mock_runner: MagicMock,
        dh_pem: bytes,
    ) -> None:
        certgen_config.default_cert_path.write_bytes(b"CERT\n")
        certgen_config.default_key_path.write_bytes(b"KEY\n")
        plan = resolve_plan(make_request(Mode.DH_PARAMS_ONLY, dh_bits=4096), certgen_config)

        result = generator.generate(plan)

        mock_backend.issue_certificate.assert_not_called()
        mock_backend.generate_dh_params.assert_called_once_with(4096)
        assert certgen_config.default_cert_path.read_bytes() == b"CERT\n"
        assert certgen_config.combined_pem_path.read_bytes() == b"CERT\nKEY\n" + dh_pem
        assert not result.rehashed
        mock_runner.assert_not_called()


class TestBackendFailures:
    """Tests for partial results when a backend step fails."""

    def test_certificate_failure_writes_nothing(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
    ) -> None:
        mock_backend.issue_certificate.side_effect = BackendError("unable to load config")

        with pytest.raises(BackendFailure, match="unable to load config") as exc_info:
            generator.generate(resolve_plan(make_request(Mode.DEFAULT), certgen_config))

        assert exc_info.value.operation == "certificate issuance"
        assert list(certgen_config.certs_dir.iterdir()) == []
        assert list(certgen_config.private_dir.iterdir()) == []

    def test_dh_failure_keeps_certificate(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
        mock_runner: MagicMock,
    ) -> None:
        mock_backend.generate_dh_params.side_effect = BackendError("out of entropy")

        with pytest.raises(BackendFailure, match="DH parameter generation failed"):
            generator.generate(resolve_plan(make_request(Mode.DEFAULT), certgen_config))

        assert certgen_config.default_cert_path.exists()
        assert certgen_config.default_key_path.exists()
        assert not certgen_config.combined_pem_path.exists()
        mock_runner.assert_not_called()


class TestCustomModes:
    """Tests for custom and wildcard runs."""

    def test_custom_with_override(
        self,
        certgen_config: CertgenConfig,
        make_request,
        generator: CertGenerator,
        mock_backend: MagicMock,
        mock_runner: MagicMock,
        tmp_path: Path,
    ) -> None:
        plan = resolve_plan(
            make_request(Mode.CUSTOM, output_override=tmp_path / "site"), certgen_config
        )

        result = generator.generate(plan)

        assert result.written == [tmp_path / "site.key", tmp_path / "site.crt"]
        assert result.bundle_path is None
        mock_backend.generate_dh_params.assert_not_called()
        mock_runner.assert_not_called()

    def test_wildcard_real_backend(
        self,
        certgen_config: CertgenConfig,
        make_request,
        assembler,
    ) -> None:
        generator = CertGenerator(backend=CryptographyBackend(), assembler=assembler)
        plan = resolve_plan(
            make_request(Mode.WILDCARD, names=("example.test",)), certgen_config
        )

        generator.generate(plan)

        cert = deserialize_certificate((certgen_config.certs_dir / "example.test.crt").read_bytes())
        assert get_subject_alt_names(cert) == ["DNS:example.test", "DNS:*.example.test"]
        assert (certgen_config.private_dir / "example.test.key").exists()


class TestDescribe:
    """Tests for CertGenerator.describe."""

    def test_summary_after_default_run(
        self, certgen_config: CertgenConfig, make_request, generator: CertGenerator
    ) -> None:
        plan = resolve_plan(make_request(Mode.DEFAULT), certgen_config)
        generator.generate(plan)

        summary = generator.describe(plan)

        assert summary["mode"] == "default"
        assert summary["dhParams"] == {"path": str(certgen_config.dh_params_path), "bits": 2048}
        certificate = summary["certificate"]
        assert isinstance(certificate, dict)
        assert certificate["subject"] == "CN=www.example.test"

    def test_summary_includes_csr(
        self,
        certgen_config: CertgenConfig,
        make_request,
        assembler,
        tmp_path: Path,
    ) -> None:
        generator = CertGenerator(backend=CryptographyBackend(), assembler=assembler)
        plan = resolve_plan(
            make_request(Mode.CUSTOM, emit_csr=True, output_override=tmp_path / "site"),
            certgen_config,
        )
        generator.generate(plan)

        summary = generator.describe(plan)

        assert summary["csr"] == {
            "path": str(tmp_path / "site.csr"),
            "subject": "CN=www.example.test",
        }
        assert "dhParams" not in summary
