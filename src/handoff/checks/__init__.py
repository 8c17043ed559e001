"""
Artifact checks: structural checks run for every agent and named checks
that presets attach to individual slots.
"""

from handoff.checks.base import (
    NonEmptyCheck,
    RequiredSectionsCheck,
    headings,
)
from handoff.checks.platform import (
    ManifestPermissionsCheck,
    PwaManifestCheck,
    TauriCapabilitiesCheck,
)
from handoff.domain.exceptions import InvalidDefinition
from handoff.domain.interfaces import ArtifactCheckInterface

NAMED_CHECKS: dict[str, type[ArtifactCheckInterface]] = {
    ManifestPermissionsCheck.name: ManifestPermissionsCheck,
    TauriCapabilitiesCheck.name: TauriCapabilitiesCheck,
    PwaManifestCheck.name: PwaManifestCheck,
    NonEmptyCheck.name: NonEmptyCheck,
}


def build_check(name: str) -> ArtifactCheckInterface:
    """
    Instantiate a named check.

    Raises:
        InvalidDefinition: If no check has that name
    """
    try:
        return NAMED_CHECKS[name]()
    except KeyError:
        raise InvalidDefinition(
            f"Unknown check '{name}' (available: {', '.join(sorted(NAMED_CHECKS))})"
        ) from None


__all__ = [
    "NAMED_CHECKS",
    "build_check",
    "headings",
    "NonEmptyCheck",
    "RequiredSectionsCheck",
    "ManifestPermissionsCheck",
    "TauriCapabilitiesCheck",
    "PwaManifestCheck",
]
