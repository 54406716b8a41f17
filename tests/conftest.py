from __future__ import annotations

import importlib.util
import sys
import warnings
from pathlib import Path
from textwrap import dedent

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
for _path in (SRC_ROOT, ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))


if importlib.util.find_spec("pytest_cov") is None:

    def pytest_addoption(parser: pytest.Parser) -> None:
        """Register stub coverage options when pytest-cov is unavailable."""

        parser.addoption("--cov", action="append", default=[], metavar="MODULE")
        parser.addoption("--cov-report", action="append", default=[], metavar="TYPE")

    def pytest_configure(config: pytest.Config) -> None:
        if config.getoption("--cov") or config.getoption("--cov-report"):
            warnings.warn(
                "pytest-cov is not installed; coverage options will be ignored.",
                RuntimeWarning,
                stacklevel=2,
            )


from tests.helpers import build_feed_payload, synthetic_history  # noqa: E402


def write_pyproject(directory: Path, contents: str) -> Path:
    """Persist a ``pyproject.toml`` under ``directory`` and return its path."""

    payload = dedent(contents).lstrip()
    target = directory / "pyproject.toml"
    target.write_text(payload, encoding="utf8")
    return target


@pytest.fixture
def pyproject_factory(tmp_path: Path):
    def _factory(contents: str) -> Path:
        return write_pyproject(tmp_path, contents)

    return _factory


@pytest.fixture
def feed_payload() -> dict:
    """Three-record feed where the newest record omits two indicators."""

    return build_feed_payload(
        [
            {"field1": "1,2,3", "field2": "36.5", "field3": "12", "field6": "97"},
            {"field1": ",".join(str(n) for n in range(18)), "field2": "36.7", "field4": "14"},
            {"field1": None, "field2": "bad", "field3": None, "field5": "4.5"},
        ]
    )


@pytest.fixture
def history_payload() -> dict:
    return build_feed_payload(synthetic_history(5))
