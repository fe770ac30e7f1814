"""
Tsrc Orchestrator Package.

Source scanning, manifest handling, compiler invocation and the
watch/compile loop.
Requires Python 3.11+.
"""

from orchestrator.build_orchestrator import BuildOrchestrator, BuildScope, BuildState
from orchestrator.compiler import (
    CompileResult,
    CompilerInvoker,
    OutputLine,
    build_compiler_arguments,
)
from orchestrator.lifecycle import ProcessLifecycleGuard
from orchestrator.manifest import build_manifest, response_file, write_manifest
from orchestrator.scanner import SourceTreeScanner

__all__ = [
    # Loop
    "BuildOrchestrator",
    "BuildScope",
    "BuildState",
    # Compiler
    "CompileResult",
    "CompilerInvoker",
    "OutputLine",
    "build_compiler_arguments",
    # Supporting pieces
    "ProcessLifecycleGuard",
    "SourceTreeScanner",
    "build_manifest",
    "response_file",
    "write_manifest",
]
