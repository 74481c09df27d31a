"""
Build system components for utbuild.

This module provides the build system implementation including:
- Annotation scanning of test sources
- Dependency resolution against include directories
- Compilation and linking through the configured toolchain
- Per-test orchestration (mocks, runner, execution, results)
"""

from .annotation_scanner import Annotation, AnnotationKind, ScanResult, SourceScanner
from .command_runner import CommandError, CommandResult, CommandRunner
from .compiler import Compiler, CompilerError
from .dependency_resolver import DependencyError, DependencyResolver
from .linker import Linker, LinkerError
from .test_orchestrator import TestResult, TestStage, UnitTestOrchestrator

__all__ = [
    "Annotation",
    "AnnotationKind",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "Compiler",
    "CompilerError",
    "DependencyError",
    "DependencyResolver",
    "Linker",
    "LinkerError",
    "ScanResult",
    "SourceScanner",
    "TestResult",
    "TestStage",
    "UnitTestOrchestrator",
]
