"""
Built-in scanner severity vocabularies.

New scanners are added by data: callers pass their own tables. A caller table
for a tool replaces the built-in one for that tool; the built-ins only cover
tools the caller does not map. Anything still unmapped fails closed in the
normalizer.
"""

from __future__ import annotations

from riskgate.models.policy_models import SeverityMaps

_FIVE_TIER = {
    "critical": "critical",
    "high": "high",
    "medium": "medium",
    "low": "low",
    "info": "info",
}

BUILTIN_TABLES: dict[str, dict[str, str]] = {
    "tfsec": {**_FIVE_TIER, "warning": "medium", "error": "high"},
    # checkov emits a severity only with a platform API key; bare failures
    # are left unmapped on purpose so they fall back to the medium default
    "checkov": {**_FIVE_TIER},
    "terrascan": {"high": "high", "medium": "medium", "low": "low"},
    "trivy": {**_FIVE_TIER, "unknown": "medium"},
    "vault-radar": {**_FIVE_TIER},
    "gitleaks": {"leak": "high"},
    "woke": {"error": "medium", "warning": "low", "info": "info"},
}

BUILTIN_SEVERITY_MAPS = SeverityMaps(tables=BUILTIN_TABLES)


def resolve_severity_maps(supplied: SeverityMaps | None) -> SeverityMaps:
    """Caller tables layered over the built-in vocabularies, tool by tool."""
    if supplied is None:
        return BUILTIN_SEVERITY_MAPS
    return supplied.merged_over(BUILTIN_SEVERITY_MAPS)
