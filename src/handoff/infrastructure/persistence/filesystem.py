"""
Filesystem implementation of the artifact store.

Artifacts live at `{project}/.shared/NN-slug.md`. Each file starts with a
YAML front-matter block (producing agent, creation timestamp, consumed
input files) followed by the markdown body exactly as the agent wrote it.
"""

import logging
import os
import threading
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from handoff.domain.exceptions import ArtifactNotFound, DuplicateArtifact
from handoff.domain.interfaces import ArtifactStoreInterface
from handoff.domain.models import Artifact, ArtifactMetadata
from handoff.domain.stages import (
    SHARED_DIR_NAME,
    STAGES,
    stage_for,
    stage_from_filename,
)

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---\n"
STATE_DIR_NAME = ".handoff"


def shared_dir(project_dir: str | Path) -> Path:
    return Path(project_dir) / SHARED_DIR_NAME


def state_dir(project_dir: str | Path) -> Path:
    """Directory holding the run log and checkpoint of a project."""
    return shared_dir(project_dir) / STATE_DIR_NAME


def render_document(metadata: ArtifactMetadata, content: str) -> str:
    """Front matter followed by the body."""
    header = {
        "agent": metadata.agent,
        "created_at": metadata.created_at,
        "inputs": list(metadata.inputs),
    }
    dumped = yaml.safe_dump(header, sort_keys=False, allow_unicode=True)
    return f"{FRONT_MATTER_DELIMITER}{dumped}{FRONT_MATTER_DELIMITER}{content}"


def parse_document(text: str) -> tuple[dict[str, Any], str]:
    """
    Split a stored document into (front matter, body).

    Files without a front-matter block (e.g. written by hand) return an
    empty header and the whole text as body.
    """
    if not text.startswith(FRONT_MATTER_DELIMITER):
        return {}, text
    end = text.find("\n" + FRONT_MATTER_DELIMITER, len(FRONT_MATTER_DELIMITER) - 1)
    if end == -1:
        return {}, text
    try:
        header = yaml.safe_load(text[len(FRONT_MATTER_DELIMITER) : end + 1]) or {}
    except yaml.YAMLError:
        # A leading horizontal rule, not front matter
        return {}, text
    if not isinstance(header, dict):
        return {}, text
    return header, text[end + 1 + len(FRONT_MATTER_DELIMITER) :]


class FilesystemArtifactStore(ArtifactStoreInterface):
    """
    Persistent artifact store scoped to one project directory.

    Writes are atomic (temp file + rename) and serialized per slug, so two
    agents can never both fill the same slot.
    """

    def __init__(self, project_dir: str | Path):
        self._project_dir = Path(project_dir)
        self._shared_dir = shared_dir(project_dir)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def project_dir(self) -> Path:
        return self._project_dir

    @property
    def shared_dir(self) -> Path:
        return self._shared_dir

    def _lock_for(self, slug: str) -> threading.Lock:
        with self._locks_guard:
            if slug not in self._locks:
                self._locks[slug] = threading.Lock()
            return self._locks[slug]

    def _path_for(self, slug: str) -> Path:
        return self._shared_dir / stage_for(slug).filename

    def put(
        self,
        slug: str,
        content: str,
        agent: str = "manual",
        inputs: Sequence[str] = (),
        overwrite: bool = False,
    ) -> ArtifactMetadata:
        path = self._path_for(slug)
        with self._lock_for(slug):
            if path.exists() and not overwrite:
                raise DuplicateArtifact(slug)

            metadata = ArtifactMetadata(
                slug=slug,
                agent=agent,
                created_at=datetime.now(UTC).isoformat(),
                inputs=tuple(inputs),
                path=str(path),
            )
            self._shared_dir.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_suffix(".tmp")
            try:
                temp_path.write_bytes(render_document(metadata, content).encode("utf-8"))
                temp_path.replace(path)  # Atomic on POSIX
            except BaseException:
                temp_path.unlink(missing_ok=True)
                raise

        logger.debug("Stored %s (%d bytes) from %s", path.name, len(content), agent)
        return metadata

    def _read(self, slug: str) -> Artifact | None:
        path = self._path_for(slug)
        if not path.exists():
            return None
        header, body = parse_document(path.read_bytes().decode("utf-8"))
        created_at = header.get("created_at")
        if not created_at:
            created_at = datetime.fromtimestamp(path.stat().st_mtime, UTC).isoformat()
        metadata = ArtifactMetadata(
            slug=slug,
            agent=str(header.get("agent", "unknown")),
            created_at=str(created_at),
            inputs=tuple(str(i) for i in header.get("inputs") or ()),
            path=str(path),
        )
        return Artifact(metadata=metadata, content=body)

    def get(self, slug: str) -> Artifact:
        artifact = self._read(slug)
        if artifact is None:
            raise ArtifactNotFound(slug)
        return artifact

    def exists(self, slug: str) -> bool:
        return self._path_for(slug).exists()

    def slugs(self) -> set[str]:
        if not self._shared_dir.is_dir():
            return set()
        found = set()
        for path in self._shared_dir.iterdir():
            stage = stage_from_filename(path.name)
            if stage is not None and path.is_file():
                found.add(stage.slug)
        return found

    def list(self) -> list[ArtifactMetadata]:
        result = []
        for stage in STAGES:
            artifact = self._read(stage.slug)
            if artifact is not None:
                result.append(artifact.metadata)
        return result

    def clear(self) -> None:
        for stage in STAGES:
            with self._lock_for(stage.slug):
                path = self._shared_dir / stage.filename
                if path.exists():
                    os.remove(path)
                    logger.info("Removed %s", path)
