"""Non-destructive defaults around existing certificate artifacts."""

from .errors import MissingPrerequisite, WouldOverwrite
from .models import GenerationPlan


def check_overwrite(plan: GenerationPlan) -> None:
    """Gate a plan against existing or missing certificate and key files.

    Existing certificate or key files block the run unless overwrite is
    forced or the plan only regenerates DH parameters. A DH-params-only plan
    needs both files, since the combined bundle is rebuilt from them.

    Raises:
        WouldOverwrite: If the certificate or key exists and would be replaced
        MissingPrerequisite: If a DH-params-only plan lacks the certificate or key
    """
    targets = (plan.paths.cert_path, plan.paths.key_path)

    if plan.dh_params_only:
        missing = [path for path in targets if not path.exists()]
        if missing:
            raise MissingPrerequisite(missing)
        return

    if plan.force_overwrite:
        return

    existing = [path for path in targets if path.exists()]
    if existing:
        raise WouldOverwrite(existing)
