"""
Platform-specific checks layered onto the architecture slot by presets.

Each check confirms that the architecture document declares something
the later stages (planner, QA) will need for that platform, either as a
JSON/TOML snippet or as a bulleted list under a matching heading.
"""

import re

from handoff.checks.base import HEADING_PATTERN
from handoff.domain.interfaces import ArtifactCheckInterface
from handoff.domain.models import Artifact, CheckResult

_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+\S")


def _listed_under_heading(content: str, keywords: tuple[str, ...]) -> bool:
    """True when a heading mentioning a keyword is followed by a list item."""
    in_section = False
    for line in content.splitlines():
        match = HEADING_PATTERN.match(line)
        if match:
            title = match.group(1).lower()
            in_section = any(k in title for k in keywords)
            continue
        if in_section and _LIST_ITEM.match(line):
            return True
    return False


def _declared_in_snippet(content: str, key: str) -> bool:
    """True for `"key": [...]` (JSON) or `key = [...]` (TOML)."""
    pattern = rf'(?:"{key}"\s*:|\b{key}\s*=)\s*\['
    return re.search(pattern, content) is not None


class ManifestPermissionsCheck(ArtifactCheckInterface):
    """Chrome extension: the manifest permission list must be declared."""

    name = "manifest-permissions"

    def validate(self, content: str, **_inputs: Artifact) -> CheckResult:
        if _declared_in_snippet(content, "permissions") or _listed_under_heading(
            content, ("permission",)
        ):
            return CheckResult(passed=True, check_name=self.name)
        return CheckResult(
            passed=False,
            feedback=(
                "The architecture must declare the extension's manifest "
                'permission list (a "permissions": [...] block or a '
                "Permissions section with one item per permission)."
            ),
            check_name=self.name,
        )


class TauriCapabilitiesCheck(ArtifactCheckInterface):
    """Tauri: the capability set granted to the webview must be declared."""

    name = "tauri-capabilities"

    def validate(self, content: str, **_inputs: Artifact) -> CheckResult:
        if (
            _declared_in_snippet(content, "permissions")
            or _declared_in_snippet(content, "capabilities")
            or _listed_under_heading(content, ("capabilit", "permission"))
        ):
            return CheckResult(passed=True, check_name=self.name)
        return CheckResult(
            passed=False,
            feedback=(
                "The architecture must list the Tauri capabilities/permissions "
                "the frontend is granted (capability file snippet or a "
                "Capabilities section)."
            ),
            check_name=self.name,
        )


class PwaManifestCheck(ArtifactCheckInterface):
    """Mobile PWA: a web app manifest with icons must be specified."""

    name = "pwa-manifest"

    def validate(self, content: str, **_inputs: Artifact) -> CheckResult:
        lowered = content.lower()
        has_manifest = "manifest" in lowered
        has_icons = _declared_in_snippet(content, "icons") or _listed_under_heading(
            content, ("icon", "manifest")
        )
        if has_manifest and has_icons:
            return CheckResult(passed=True, check_name=self.name)
        return CheckResult(
            passed=False,
            feedback=(
                "The architecture must specify the web app manifest, including "
                "its icon set."
            ),
            check_name=self.name,
        )
