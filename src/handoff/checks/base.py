"""
Structural checks applied to every agent's output.

Downstream stages depend on the presence of section headings, not on
their content, so these checks only look at the markdown outline.
"""

import re

from handoff.domain.interfaces import ArtifactCheckInterface
from handoff.domain.models import Artifact, CheckResult

HEADING_PATTERN = re.compile(r"^\s{0,3}#{1,6}\s+(.+?)\s*#*\s*$")


def headings(content: str) -> list[str]:
    """All markdown ATX heading texts, outside fenced code blocks."""
    found = []
    in_fence = False
    for line in content.splitlines():
        if line.lstrip().startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = HEADING_PATTERN.match(line)
        if match:
            found.append(match.group(1))
    return found


class NonEmptyCheck(ArtifactCheckInterface):
    """Rejects blank output."""

    name = "non-empty"

    def validate(self, content: str, **_inputs: Artifact) -> CheckResult:
        if not content.strip():
            return CheckResult(
                passed=False, feedback="Output is empty", check_name=self.name
            )
        return CheckResult(passed=True, check_name=self.name)


class RequiredSectionsCheck(ArtifactCheckInterface):
    """Requires a heading containing each section name (case-insensitive)."""

    name = "required-sections"

    def __init__(self, sections: tuple[str, ...] | list[str]):
        self._sections = tuple(sections)

    @property
    def sections(self) -> tuple[str, ...]:
        return self._sections

    def validate(self, content: str, **_inputs: Artifact) -> CheckResult:
        found = [h.lower() for h in headings(content)]
        missing = [
            s for s in self._sections if not any(s.lower() in h for h in found)
        ]
        if missing:
            return CheckResult(
                passed=False,
                feedback="Missing required sections: " + ", ".join(missing),
                check_name=self.name,
            )
        return CheckResult(passed=True, check_name=self.name)
