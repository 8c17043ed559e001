"""Application service for resuming a project's last run.

Resuming is a normal run over a partially filled store: the scheduler
skips every agent whose artifact exists. The service only decides which
preset to use and refuses to continue if that preset changed since the
checkpoint was written.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from handoff.domain.exceptions import ConfigurationError, PresetChanged
from handoff.domain.reference import compute_preset_ref

if TYPE_CHECKING:
    from handoff.application.registry import PresetRegistry
    from handoff.domain.graph import DependencyGraph
    from handoff.domain.interfaces import CheckpointStoreInterface
    from handoff.domain.models import RunCheckpoint

logger = logging.getLogger(__name__)


class ResumeService:
    """Resolves the graph to resume from the latest checkpoint."""

    def __init__(
        self,
        presets: PresetRegistry,
        checkpoint_store: CheckpointStoreInterface,
    ) -> None:
        self._presets = presets
        self._checkpoint_store = checkpoint_store

    def last_run(self) -> RunCheckpoint:
        """
        Raises:
            ConfigurationError: If the project has never been run
        """
        checkpoint = self._checkpoint_store.load()
        if checkpoint is None:
            raise ConfigurationError(
                "No previous run found; start one with `handoff run`"
            )
        return checkpoint

    def prepare(self, force: bool = False) -> DependencyGraph:
        """
        Graph of the preset used by the last run.

        Args:
            force: Resume even if the preset definition changed

        Raises:
            ConfigurationError: If the project has never been run
            UnknownPreset: If the preset is no longer registered
            PresetChanged: If the preset changed and force is False
        """
        checkpoint = self.last_run()
        graph = self._presets.graph(checkpoint.preset)
        current = compute_preset_ref(graph.preset, graph.agents)
        if current != checkpoint.preset_ref:
            if not force:
                raise PresetChanged(checkpoint.preset, checkpoint.preset_ref, current)
            logger.warning(
                "Preset '%s' changed since run %s; resuming anyway",
                checkpoint.preset,
                checkpoint.run_id,
            )
        logger.info(
            "Resuming preset '%s' (last run %s: %s)",
            checkpoint.preset,
            checkpoint.run_id,
            checkpoint.status.value,
        )
        return graph
