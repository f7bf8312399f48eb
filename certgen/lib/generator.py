"""Certificate generator running a plan end to end."""

from .assembler import ArtifactAssembler
from .backend import CryptoBackend, CryptographyBackend, CryptoInvoker
from .cert_utils import deserialize_certificate, deserialize_csr, describe_certificate
from .dh_groups import load_dh_parameters
from .errors import BackendFailure
from .guard import check_overwrite
from .logging_config import LOGGER
from .models import BackendResult, GenerationPlan, GenerationResult


def _require(result: BackendResult, operation: str) -> bytes:
    """Return the PEM output of a successful result, or raise BackendFailure."""
    if not result.ok:
        raise BackendFailure(operation, result.diagnostic or "")
    if result.pem is None:
        raise BackendFailure(operation, "backend returned no output")
    return result.pem


class CertGenerator:
    """Runs guard, backend operations and assembly for a generation plan."""

    def __init__(
        self,
        backend: CryptoBackend | None = None,
        assembler: ArtifactAssembler | None = None,
    ) -> None:
        """Initialize generator.

        Args:
            backend: Crypto backend (defaults to the in-process cryptography backend)
            assembler: Artifact assembler (defaults to one running ``openssl rehash``)
        """
        self.invoker = CryptoInvoker(backend or CryptographyBackend())
        self.assembler = assembler or ArtifactAssembler()

    def generate(self, plan: GenerationPlan) -> GenerationResult:
        """Produce every artifact the plan asks for.

        Artifacts written before a later step fails stay on disk; the failure
        is raised all the same.

        Args:
            plan: Resolved generation plan

        Returns:
            GenerationResult listing written artifacts

        Raises:
            WouldOverwrite: If existing files block the plan
            MissingPrerequisite: If a DH-params-only plan lacks cert or key
            BackendFailure: If a backend operation fails
            ArtifactError: If writing, bundling or trust store refresh fails
        """
        check_overwrite(plan)
        result = GenerationResult(plan=plan)
        paths = plan.paths

        if plan.issue_certificate:
            issued = self.invoker.issue_certificate(plan.template, plan.expiry_days)
            cert_pem = _require(issued, "certificate issuance")
            if issued.key_pem is None:
                raise BackendFailure("certificate issuance", "backend returned no private key")
            result.written.append(self.assembler.store_key(paths.key_path, issued.key_pem))
            result.written.append(self.assembler.store_certificate(paths.cert_path, cert_pem))
            LOGGER.info("Certificate for %s written to %s", plan.common_name, paths.cert_path)

            if paths.csr_path is not None:
                csr_pem = _require(
                    self.invoker.issue_csr(plan.template, issued.key_pem), "CSR issuance"
                )
                result.written.append(self.assembler.store_csr(paths.csr_path, csr_pem))
                LOGGER.info("CSR written to %s", paths.csr_path)

        if plan.generate_dh_params:
            dh_pem = _require(
                self.invoker.generate_dh_params(plan.dh_bits), "DH parameter generation"
            )
            result.written.append(self.assembler.store_dh_params(paths.dh_params_path, dh_pem))
            LOGGER.info("%d-bit DH parameters written to %s", plan.dh_bits, paths.dh_params_path)

        return self.assembler.finalize(plan, result)

    @staticmethod
    def describe(plan: GenerationPlan) -> dict[str, object]:
        """Summarize the artifacts of a completed plan for the verbose dump."""
        summary: dict[str, object] = {"mode": plan.mode.value}
        if plan.issue_certificate:
            cert = deserialize_certificate(plan.paths.cert_path.read_bytes())
            summary["certificate"] = describe_certificate(cert)
        if plan.paths.csr_path is not None:
            csr = deserialize_csr(plan.paths.csr_path.read_bytes())
            summary["csr"] = {
                "path": str(plan.paths.csr_path),
                "subject": csr.subject.rfc4514_string(),
            }
        if plan.generate_dh_params:
            prime, _ = load_dh_parameters(plan.paths.dh_params_path.read_bytes())
            summary["dhParams"] = {
                "path": str(plan.paths.dh_params_path),
                "bits": prime.bit_length(),
            }
        return summary
