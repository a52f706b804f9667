"""
Structure lint tests.

Verify that each atomic component follows the package conventions and that
the runtime artifacts the app loads at startup are present.
"""

from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent

COMPONENTS = ["targets", "interactions", "analytics"]
COMPONENT_FILES = ["__init__.py", "models.py", "ports.py", "_impl.py", "component.py"]


class TestProjectStructure:
    def test_core_directories_exist(self) -> None:
        assert (PROJECT_ROOT / "src" / "core").is_dir()
        assert (PROJECT_ROOT / "src" / "core" / "ports").is_dir()
        assert (PROJECT_ROOT / "src" / "adapters" / "sqlite").is_dir()
        assert (PROJECT_ROOT / "src" / "api" / "routes").is_dir()

    @pytest.mark.parametrize("component", COMPONENTS)
    def test_component_layout(self, component: str) -> None:
        root = PROJECT_ROOT / "src" / "components" / component
        for name in COMPONENT_FILES:
            assert (root / name).is_file(), f"{component} is missing {name}"
        assert (root / "tests" / "test_unit.py").is_file()

    @pytest.mark.parametrize("component", COMPONENTS)
    def test_component_exports_declared(self, component: str) -> None:
        init = (PROJECT_ROOT / "src" / "components" / component / "__init__.py").read_text()
        assert "__all__" in init

    def test_tests_structure_exists(self) -> None:
        assert (PROJECT_ROOT / "tests" / "unit").is_dir()
        assert (PROJECT_ROOT / "tests" / "integration").is_dir()
        assert (PROJECT_ROOT / "tests" / "regression").is_dir()
        assert (PROJECT_ROOT / "tests" / "api").is_dir()


class TestRuntimeArtifactsPresent:
    def test_rules_exists(self) -> None:
        assert (PROJECT_ROOT / "rules.yaml").is_file()

    def test_migrations_are_numbered(self) -> None:
        names = sorted(p.name for p in (PROJECT_ROOT / "migrations").glob("*.sql"))
        assert names, "no migrations found"
        assert all(name[:3].isdigit() and name[3] == "_" for name in names)
