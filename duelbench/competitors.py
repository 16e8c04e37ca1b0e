"""
Competitors and the code variants they are built from.

Agent logic arrives in three shapes: raw source text, a reference to a
built-in program, or an already compiled binary. ``resolve_code`` collapses
all of them into a ``CompiledBinary`` once, at the boundary, so the trial
runner only ever sees compiled code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .errors import CompileError, InvalidConfiguration
from .interfaces import Compiler

logger = logging.getLogger(__name__)

RESIDENT_NAME = "Enemy"


@dataclass(frozen=True)
class SourceText:
    source: str


@dataclass(frozen=True)
class BuiltinReference:
    name: str


@dataclass(frozen=True)
class CompiledBinary:
    payload: Any


Code = Union[SourceText, BuiltinReference, CompiledBinary]


@dataclass(frozen=True)
class Competitor:
    """Compiled agent logic plus the name it is reported under.

    Instances are shared by reference across every concurrent trial they take
    part in and must never be mutated.
    """
    name: str
    compiled_code: CompiledBinary
    source_code: Optional[str] = None


def _compile(source: str, compiler: Compiler, label: str) -> CompiledBinary:
    try:
        compiled = compiler.compile(source)
    except Exception as e:
        raise CompileError(f"Failed to compile {label}: {e}", context_data={"code": label}) from e
    return compiled if isinstance(compiled, CompiledBinary) else CompiledBinary(compiled)


def resolve_code(code: Code, compiler: Compiler) -> CompiledBinary:
    """Turn any code variant into its compiled form."""
    if isinstance(code, CompiledBinary):
        return code
    if isinstance(code, SourceText):
        return _compile(code.source, compiler, "source text")
    if isinstance(code, BuiltinReference):
        try:
            source = compiler.builtin_source(code.name)
        except Exception as e:
            raise CompileError(f"Invalid builtin code {code.name}: {e}",
                               context_data={"builtin": code.name}) from e
        return _compile(source, compiler, f"builtin {code.name}")
    raise InvalidConfiguration(f"Invalid code type {type(code).__name__}")


def source_of(code: Code, compiler: Compiler) -> Optional[str]:
    if isinstance(code, SourceText):
        return code.source
    if isinstance(code, BuiltinReference):
        return compiler.builtin_source(code.name)
    return None


def resident_competitor(scenario: str, code: Code, compiler: Compiler) -> Competitor:
    """Compile a scenario's built-in team 1 opponent."""
    logger.debug(f"Compiling resident opponent for {scenario}")
    compiled = resolve_code(code, compiler)
    source = None if isinstance(code, CompiledBinary) else source_of(code, compiler)
    return Competitor(name=RESIDENT_NAME, compiled_code=compiled, source_code=source)


def load_competitor(path: Union[str, Path], compiler: Compiler) -> Competitor:
    """Read an agent source file and compile it, named after the path given."""
    try:
        src = Path(path).read_text()
    except OSError as e:
        raise InvalidConfiguration(f"Cannot read competitor source {path}: {e}",
                                   context_data={"path": str(path)}) from e
    return Competitor(name=str(path), compiled_code=resolve_code(SourceText(src), compiler), source_code=src)
