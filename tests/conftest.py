"""Pytest configuration and fixtures for Seastar tests.

Besides the shared fixtures below, this conftest works around Python 3.13
closing stdout/stderr during teardown ("I/O operation on closed file"),
see https://github.com/pytest-dev/pytest/issues/11439
"""

import io
import sys
import warnings
from pathlib import Path
from typing import Callable, Dict, List, Optional
from unittest.mock import patch

import pytest

from seastar import output
from seastar.subprocess_utils import ToolResult

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture(autouse=True)
def console_output():
    """Capture user-facing output from seastar.output.

    Request it by name to inspect what was printed: console_output.getvalue()
    """
    stream = io.StringIO()
    output.init_timer(stream)
    output.set_verbose(True)
    yield stream
    output.init_timer(sys.__stdout__)


@pytest.fixture(autouse=True)
def _isolated_cache(tmp_path, monkeypatch):  # noqa: PT004
    """Never touch the real ~/.seastar cache from tests."""
    monkeypatch.setenv("SEASTAR_CACHE_DIR", str(tmp_path / "_seastar_cache"))


class FakeToolchain:
    """Stands in for gcc, g++ and ar.

    Every invocation is recorded. A compile (`-c <src> -o <obj>`) or link
    (`-o <out>`) writes the output file; `ar rcs <out> ...` writes the
    archive. Tools listed in `fail` exit with status 1, tools listed in
    `missing` behave as if the executable does not exist.
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.fail: Dict[str, str] = {}
        self.missing: set = set()

    def __call__(self, cmd: List[str], capture: bool = True, cwd: Optional[str] = None) -> ToolResult:
        from seastar.subprocess_utils import ToolNotFoundError

        cmd = [str(part) for part in cmd]
        self.calls.append(cmd)
        tool = cmd[0]
        if tool in self.missing:
            raise ToolNotFoundError(tool, "executable not found")
        if tool in self.fail:
            return ToolResult(command=tuple(cmd), returncode=1, stderr=self.fail[tool])

        if len(cmd) > 2 and cmd[1] == "rcs":
            out = Path(cmd[2])
        elif "-o" in cmd:
            out = Path(cmd[cmd.index("-o") + 1])
        else:
            out = None
        if out is not None:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(b"\x7fELF fake")
        return ToolResult(command=tuple(cmd), returncode=0)

    def compile_calls(self) -> List[List[str]]:
        return [c for c in self.calls if "-c" in c]

    def archive_calls(self) -> List[List[str]]:
        return [c for c in self.calls if len(c) > 1 and c[1] == "rcs"]

    def link_calls(self) -> List[List[str]]:
        return [c for c in self.calls if "-c" not in c and not (len(c) > 1 and c[1] == "rcs")]


@pytest.fixture
def fake_toolchain():
    """Patch the compiler and linker to use FakeToolchain."""
    toolchain = FakeToolchain()
    with patch("seastar.build.compiler.run_tool", toolchain), patch("seastar.build.linker.run_tool", toolchain):
        yield toolchain


@pytest.fixture
def make_project(tmp_path) -> Callable[..., Path]:
    """Factory writing a project directory with a Seastar.toml and sources.

    Usage:
        project = make_project("app", files={"src/main.c": "int main(){}"},
                               dependencies={"ring": {"path": "../ring"}})
    """

    def _make(
        name: str,
        files: Optional[Dict[str, str]] = None,
        dependencies: Optional[Dict[str, object]] = None,
        is_library: bool = False,
        compiler: str = "gcc",
        extra: str = "",
    ) -> Path:
        project = tmp_path / name
        project.mkdir(parents=True, exist_ok=True)
        lines = [
            f'project_name = "{name}"',
            f'compiler = "{compiler}"',
            f"is_library = {'true' if is_library else 'false'}",
        ]
        if extra:
            lines.append(extra)
        if dependencies:
            lines.append("")
            lines.append("[dependencies]")
            for dep_name, spec in dependencies.items():
                if isinstance(spec, str):
                    lines.append(f'{dep_name} = "{spec}"')
                else:
                    items = ", ".join(f'{k} = "{v}"' for k, v in spec.items())  # type: ignore[union-attr]
                    lines.append(f"{dep_name} = {{ {items} }}")
        (project / "Seastar.toml").write_text("\n".join(lines) + "\n")
        for rel, content in (files or {}).items():
            path = project / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return project

    return _make
