"""
Pytest configuration and shared fixtures for graphgen tests.

Provides the movies fixture package, a factory for throwaway Go packages,
and the ``--update-golden`` switch for the golden-file tests.
"""

import shutil
import textwrap
from pathlib import Path
from typing import Dict

import pytest

from graphgen.codegen import GeneratorConfig, build_package


TESTDATA_DIR = Path(__file__).parent / "testdata"
MOVIES_DIR = TESTDATA_DIR / "movies"
GOLDEN_DIR = TESTDATA_DIR / "golden"

MOVIES_ENTITIES = [
    "Actor",
    "Director",
    "Film",
    "Performance",
    "Genre",
    "Country",
    "Location",
    "Rating",
    "ContentRating",
]


def pytest_addoption(parser):
    parser.addoption(
        "--update-golden",
        action="store_true",
        default=False,
        help="Accept the current generator output as the new golden reference",
    )


@pytest.fixture
def update_golden(request):
    return request.config.getoption("--update-golden")


@pytest.fixture(scope="session")
def movies_dir():
    """The read-only movies fixture package."""
    return MOVIES_DIR


@pytest.fixture
def movies_package(movies_dir):
    """Parsed and inferred movies package (fresh per test)."""
    return build_package(GeneratorConfig(pkg_dir=str(movies_dir)))


@pytest.fixture
def movies_copy(tmp_path):
    """Writable copy of the movies module; returns the package directory."""
    root = tmp_path / "module"
    shutil.copytree(TESTDATA_DIR, root, ignore=shutil.ignore_patterns("golden"))
    return root / "movies"


@pytest.fixture
def make_package(tmp_path):
    """
    Factory writing a Go module with one package.

    Usage: ``make_package({"film.go": source})`` returns the package
    directory. Sources are dedented, so tests can indent them freely.
    """

    def _make(files: Dict[str, str], module: str = "example.com/app", subdir: str = "app") -> Path:
        root = tmp_path / "src"
        root.mkdir(exist_ok=True)
        (root / "go.mod").write_text(f"module {module}\n\ngo 1.23\n", encoding="utf-8")
        package_dir = root / subdir
        package_dir.mkdir(parents=True, exist_ok=True)
        for name, source in files.items():
            (package_dir / name).write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return package_dir

    return _make


def entity_source(name: str, body: str = "", package: str = "app") -> str:
    """Go source for one entity struct with identity fields and extra field lines."""
    lines = "\n".join(f"\t{line.strip()}" for line in body.strip().splitlines() if line.strip())
    return (
        f"package {package}\n\n"
        f"type {name} struct {{\n"
        f'\tUID   string   `json:"uid,omitempty"`\n'
        f'\tDType []string `json:"dgraph.type,omitempty"`\n'
        f"{lines}\n"
        f"}}\n"
    )
