"""Fixtures for the layer rules over src/handoff."""

import os

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)

SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "src"))


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    return get_evaluable_architecture(SRC_DIR, os.path.join(SRC_DIR, "handoff"))


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """Domain, application and infrastructure, plus the built-in catalog.

    Module names are relative to the source root ('src.handoff.domain').
    The catalog layer holds the persona agents, presets and artifact
    checks, which are data and validators on top of the domain.
    """
    return (
        LayeredArchitecture()
        .layer("domain")
        .containing_modules(["src.handoff.domain"])
        .layer("application")
        .containing_modules(["src.handoff.application"])
        .layer("infrastructure")
        .containing_modules(["src.handoff.infrastructure"])
        .layer("catalog")
        .containing_modules(["src.handoff.catalog", "src.handoff.checks"])
    )
