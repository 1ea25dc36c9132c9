"""Root conftest.py for lxi-control.

This provides shared pytest configuration and fixtures for the test suite:
an emulated function generator served over loopback TCP, and automatic
marking of tests that replace sockets or sessions with mocks.
"""

from __future__ import annotations

import ast
import inspect
import socket
import sys
import textwrap
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


# Add the package src directory to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("lxi-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))

from lxi_control.emulator import make_tg5011_emulator  # noqa: E402
from lxi_control.server import EmulatorServer  # noqa: E402


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "uses_mock: Test uses mocking (auto-detected or manually marked)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a real function generator",
    )


@pytest.fixture
def server() -> Iterator[EmulatorServer]:
    """Emulated TG5011 listening on an ephemeral loopback port."""
    srv = EmulatorServer(make_tg5011_emulator(), port=0)
    srv.start()
    try:
        yield srv
    finally:
        srv.stop()


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


# Names whose call or use marks a test as mocked
_MOCK_NAMES = frozenset({
    "MagicMock",
    "Mock",
    "patch",
    "create_autospec",
    "mocker",
})


def _uses_mock(source: str) -> bool:
    """Return True if the test source calls a mock factory or patch helper.

    Helpers named ``Mock*`` or ``_make_mock*`` in test modules count too.
    """
    try:
        tree = ast.parse(textwrap.dedent(source))
    except SyntaxError:
        return False
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            name = node.id
        elif isinstance(node, ast.Attribute):
            name = node.attr
        else:
            continue
        if name in _MOCK_NAMES or name.startswith(("Mock", "_make_mock")):
            return True
    return False


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Auto-detect and mark tests that use mocking."""
    for item in items:
        if item.get_closest_marker("uses_mock"):
            continue
        obj = getattr(item, "obj", None)
        if obj is None:
            continue
        try:
            source = inspect.getsource(obj)
        except (OSError, TypeError):
            continue
        if _uses_mock(source):
            item.add_marker(pytest.mark.uses_mock)


def pytest_report_header(config: Config) -> list[str]:
    """Add suite info to the pytest header."""
    return ["lxi-control test suite"]
