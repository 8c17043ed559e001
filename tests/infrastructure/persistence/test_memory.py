"""Tests for InMemoryArtifactStore."""

import threading

import pytest

from handoff.domain.exceptions import ArtifactNotFound, DuplicateArtifact


class TestInMemoryArtifactStore:
    def test_put_get(self, memory_store):
        memory_store.put("requirements", "# Req\n", agent="interviewer")
        artifact = memory_store.get("requirements")
        assert artifact.content == "# Req\n"
        assert artifact.metadata.path is None

    def test_duplicate(self, memory_store):
        memory_store.put("requirements", "a")
        with pytest.raises(DuplicateArtifact):
            memory_store.put("requirements", "b")

    def test_not_found(self, memory_store):
        with pytest.raises(ArtifactNotFound):
            memory_store.get("roadmap")

    def test_single_writer_per_slug(self, memory_store):
        """Concurrent writers to one slot: exactly one wins."""
        errors: list[Exception] = []

        def write(i: int) -> None:
            try:
                memory_store.put("wireframes", f"version {i}")
            except DuplicateArtifact as e:
                errors.append(e)

        threads = [threading.Thread(target=write, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 7
        assert memory_store.slugs() == {"wireframes"}

    def test_clear(self, memory_store, populate):
        populate("requirements", "roadmap")
        memory_store.clear()
        assert memory_store.list() == []
