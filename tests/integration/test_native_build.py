"""End-to-end builds with the host C toolchain.

Skipped when gcc or ar is not installed.
"""

import os
import shutil
import subprocess
import time

import pytest

from seastar.build import BuildOrchestrator, BuildParams

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("gcc") is None or shutil.which("ar") is None, reason="gcc/ar not installed"),
]


@pytest.fixture
def app_with_ring(make_project):
    make_project(
        "ring",
        is_library=True,
        files={
            "src/ring.c": '#include <ring/ring.h>\nint ring_answer(void) { return 42; }\n',
            "include/ring/ring.h": "int ring_answer(void);\n",
        },
    )
    return make_project(
        "app",
        files={"src/main.c": '#include <stdio.h>\n#include <ring/ring.h>\nint main(void) { printf("%d\\n", ring_answer()); return 0; }\n'},
        dependencies={"ring": {"path": "../ring"}},
    )


def test_build_and_run(app_with_ring):
    result = BuildOrchestrator().build(BuildParams(project_dir=app_with_ring))

    assert result.output_path.exists()
    assert (app_with_ring / "deps" / "ring" / "libring.a").exists()
    proc = subprocess.run([str(result.output_path)], capture_output=True, text=True, check=False)
    assert proc.returncode == 0
    assert proc.stdout.strip() == "42"


def test_incremental_rebuild(app_with_ring):
    BuildOrchestrator().build(BuildParams(project_dir=app_with_ring))

    unchanged = BuildOrchestrator().build(BuildParams(project_dir=app_with_ring))
    assert unchanged.compiled == 0

    main_c = app_with_ring / "src" / "main.c"
    future = time.time() + 10
    os.utime(main_c, (future, future))
    touched = BuildOrchestrator().build(BuildParams(project_dir=app_with_ring))
    assert touched.compiled == 1


def test_library_project(make_project):
    project = make_project("vec", is_library=True, files={"src/vec.c": "int vec_len(void) { return 0; }\n"})

    result = BuildOrchestrator().build(BuildParams(project_dir=project))

    assert result.is_library
    assert result.output_path.name == "libvec.a"
    assert result.output_path.exists()
