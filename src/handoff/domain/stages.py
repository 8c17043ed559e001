"""
The eight fixed stage slots of the handoff pipeline.

Each stage owns exactly one artifact file, `NN-slug.md`, in the shared
directory of a project.
"""

from dataclasses import dataclass

from handoff.domain.exceptions import UnknownStage

SHARED_DIR_NAME = ".shared"


@dataclass(frozen=True)
class Stage:
    """A numbered artifact slot."""

    number: int
    slug: str

    @property
    def filename(self) -> str:
        return f"{self.number:02d}-{self.slug}.md"


STAGES: tuple[Stage, ...] = (
    Stage(1, "requirements"),
    Stage(2, "wireframes"),
    Stage(3, "ux-specification"),
    Stage(4, "tech-architecture"),
    Stage(5, "flow-diagrams"),
    Stage(6, "animations"),
    Stage(7, "roadmap"),
    Stage(8, "qa-report"),
)

_BY_SLUG = {stage.slug: stage for stage in STAGES}
_BY_NUMBER = {stage.number: stage for stage in STAGES}


def is_stage_slug(slug: str) -> bool:
    """Check whether slug names one of the stage slots."""
    return slug in _BY_SLUG


def stage_for(slug: str) -> Stage:
    """
    Look up a stage by slug.

    Raises:
        UnknownStage: If slug is not a stage slot
    """
    try:
        return _BY_SLUG[slug]
    except KeyError:
        raise UnknownStage(
            f"Unknown stage slug: {slug} (expected one of: {', '.join(_BY_SLUG)})"
        ) from None


def stage_number(number: int) -> Stage:
    """
    Look up a stage by its number (1-8).

    Raises:
        UnknownStage: If number is out of range
    """
    try:
        return _BY_NUMBER[number]
    except KeyError:
        raise UnknownStage(f"Unknown stage number: {number}") from None


def stage_from_filename(filename: str) -> Stage | None:
    """Parse `NN-slug.md` back into its stage, or None for other files."""
    number, sep, _ = filename.partition("-")
    if not sep or not number.isdigit():
        return None
    try:
        stage = stage_number(int(number))
    except UnknownStage:
        return None
    return stage if stage.filename == filename else None
