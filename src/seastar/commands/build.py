"""Build command: build a project and report the artifact."""

from typing import Optional

from seastar.build import BuildOrchestrator, BuildParams, BuildResult
from seastar.output import log_build_complete, log_success


def build_project(params: BuildParams, orchestrator: Optional[BuildOrchestrator] = None) -> BuildResult:
    """Build the project described by `params`.

    Raises:
        SeastarError: If configuration, dependency resolution, compilation
            or linking fails
    """
    orchestrator = orchestrator or BuildOrchestrator()
    result = orchestrator.build(params)

    kind = "Library" if result.is_library else "Binary"
    log_success(f"✓ Build successful: {kind} {result.output_path}")
    if result.dependency_archives:
        log_success(f"  Dependencies: {len(result.dependency_archives)}")
    log_success(f"  Compiled {result.compiled}, cached {result.cached}")
    log_build_complete(result.build_time)
    return result
