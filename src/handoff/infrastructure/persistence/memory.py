"""
In-memory implementation of the artifact store.

Useful for testing and ephemeral runs.
"""

import threading
from collections.abc import Sequence
from datetime import UTC, datetime

from handoff.domain.exceptions import ArtifactNotFound, DuplicateArtifact
from handoff.domain.interfaces import ArtifactStoreInterface
from handoff.domain.models import Artifact, ArtifactMetadata
from handoff.domain.stages import stage_for


class InMemoryArtifactStore(ArtifactStoreInterface):
    """Simple in-memory store for testing."""

    def __init__(self) -> None:
        self._artifacts: dict[str, Artifact] = {}
        self._lock = threading.Lock()

    def put(
        self,
        slug: str,
        content: str,
        agent: str = "manual",
        inputs: Sequence[str] = (),
        overwrite: bool = False,
    ) -> ArtifactMetadata:
        stage_for(slug)
        with self._lock:
            if slug in self._artifacts and not overwrite:
                raise DuplicateArtifact(slug)
            metadata = ArtifactMetadata(
                slug=slug,
                agent=agent,
                created_at=datetime.now(UTC).isoformat(),
                inputs=tuple(inputs),
            )
            self._artifacts[slug] = Artifact(metadata=metadata, content=content)
        return metadata

    def get(self, slug: str) -> Artifact:
        if slug not in self._artifacts:
            raise ArtifactNotFound(slug)
        return self._artifacts[slug]

    def exists(self, slug: str) -> bool:
        return slug in self._artifacts

    def list(self) -> list[ArtifactMetadata]:
        return sorted(
            (a.metadata for a in self._artifacts.values()),
            key=lambda m: m.stage.number,
        )

    def clear(self) -> None:
        with self._lock:
            self._artifacts.clear()

    def slugs(self) -> set[str]:
        with self._lock:
            return set(self._artifacts)
