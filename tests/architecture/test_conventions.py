"""
Convention Enforcement Tests.

Catch what import-based layer rules cannot: frozen dataclasses,
immutable collections, silent exception swallowing and port contracts.
"""

import ast
import inspect
from pathlib import Path

import pytest

from handoff.domain import interfaces
from handoff.infrastructure.persistence import (
    FilesystemArtifactStore,
    FilesystemCheckpointStore,
    FilesystemRunEventStore,
    InMemoryArtifactStore,
    InMemoryCheckpointStore,
    InMemoryRunEventStore,
)

pytestmark = pytest.mark.architecture

SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "handoff"

# Run bookkeeping is mutated while the run progresses
MUTABLE_DATACLASS_ALLOWLIST = {"RunState"}

DOMAIN_MODEL_FILES = ("models.py", "stages.py", "prompts.py", "run_event.py")


def _dataclasses(filepath: Path) -> list[tuple[ast.ClassDef, bool]]:
    """(class node, is_frozen) for each @dataclass in a file."""
    tree = ast.parse(filepath.read_text())
    results = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                results.append((node, False))
            elif (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Name)
                and decorator.func.id == "dataclass"
            ):
                frozen = any(
                    kw.arg == "frozen"
                    and isinstance(kw.value, ast.Constant)
                    and kw.value.value is True
                    for kw in decorator.keywords
                )
                results.append((node, frozen))
    return results


class TestFrozenDataclassConvention:
    @pytest.mark.parametrize("filename", DOMAIN_MODEL_FILES)
    def test_domain_dataclasses_are_frozen(self, filename):
        """All domain dataclasses must be frozen (except RunState)."""
        violations = [
            node.name
            for node, frozen in _dataclasses(SRC_ROOT / "domain" / filename)
            if not frozen and node.name not in MUTABLE_DATACLASS_ALLOWLIST
        ]
        assert not violations, (
            f"Domain dataclasses must be frozen. Violations: {violations}. "
            "If mutable is intentional, add to MUTABLE_DATACLASS_ALLOWLIST."
        )


class TestImmutableCollections:
    @pytest.mark.parametrize("filename", DOMAIN_MODEL_FILES)
    def test_frozen_fields_use_tuples(self, filename):
        """Frozen dataclass fields use tuple[], never list[]."""
        path = SRC_ROOT / "domain" / filename
        source = path.read_text()
        violations = []
        for node, frozen in _dataclasses(path):
            if not frozen:
                continue
            for item in node.body:
                if not isinstance(item, ast.AnnAssign):
                    continue
                annotation = ast.get_source_segment(source, item.annotation) or ""
                if "list[" in annotation.lower():
                    violations.append(f"{node.name}.{getattr(item.target, 'id', '?')}")
        assert not violations, f"Use tuple[] instead of list[]: {violations}"


class TestNoSilentExceptionSwallowing:
    def test_no_except_pass(self):
        """No `except ...: pass` anywhere in src/handoff/."""
        violations = []
        for py_file in SRC_ROOT.rglob("*.py"):
            source = py_file.read_text()
            for node in ast.walk(ast.parse(source)):
                if not isinstance(node, ast.ExceptHandler) or len(node.body) != 1:
                    continue
                stmt = node.body[0]
                is_ellipsis = (
                    isinstance(stmt, ast.Expr)
                    and isinstance(stmt.value, ast.Constant)
                    and stmt.value.value is ...
                )
                if isinstance(stmt, ast.Pass) or is_ellipsis:
                    rel_path = py_file.relative_to(SRC_ROOT.parent.parent)
                    violations.append(f"{rel_path}:{node.lineno}")
        assert not violations, f"Silent exception swallowing found: {violations}"


class TestInterfaceConventions:
    def _ports(self) -> list[tuple[str, type]]:
        return [
            (name, cls)
            for name, cls in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(cls) and cls.__module__ == interfaces.__name__
        ]

    def test_all_ports_end_with_interface(self):
        violations = [name for name, _ in self._ports() if not name.endswith("Interface")]
        assert not violations, f"Abstract classes should end with 'Interface': {violations}"

    def test_all_interface_methods_are_abstract(self):
        """Every public method on a port must be abstract."""
        violations = [
            f"{name}.{method_name}"
            for name, cls in self._ports()
            for method_name, method in inspect.getmembers(cls, inspect.isfunction)
            if not method_name.startswith("_")
            and not getattr(method, "__isabstractmethod__", False)
        ]
        assert not violations, f"Public interface methods must be abstract: {violations}"

    @pytest.mark.parametrize(
        ("port", "implementations"),
        [
            (
                interfaces.ArtifactStoreInterface,
                (FilesystemArtifactStore, InMemoryArtifactStore),
            ),
            (
                interfaces.RunEventStoreInterface,
                (FilesystemRunEventStore, InMemoryRunEventStore),
            ),
            (
                interfaces.CheckpointStoreInterface,
                (FilesystemCheckpointStore, InMemoryCheckpointStore),
            ),
        ],
    )
    def test_implementations_are_concrete(self, port, implementations):
        for impl in implementations:
            assert issubclass(impl, port)
            assert not inspect.isabstract(impl), (
                f"{impl.__name__} is missing {sorted(impl.__abstractmethods__)}"
            )
