from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any

from .errors import InvalidConfiguration
from .interfaces import Compiler, ScenarioCatalogue, SimulationEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Backend:
    """The three external collaborators a benchmark run needs."""
    engine: SimulationEngine
    catalogue: ScenarioCatalogue
    compiler: Compiler


def load_backend(ref: str) -> Backend:
    """Import ``package.module:attribute`` and build a Backend from it.

    The attribute may be a Backend-like object or a zero-argument callable
    returning one; anything exposing ``engine``, ``catalogue`` and
    ``compiler`` is accepted.
    """
    if not ref or ":" not in ref:
        raise InvalidConfiguration(f"Backend must look like 'module:attribute', got {ref!r}")
    mod_path, _, attr = ref.partition(":")
    try:
        mod = importlib.import_module(mod_path)
    except ImportError as e:
        raise InvalidConfiguration(f"Cannot import backend module {mod_path}: {e}") from e
    try:
        target: Any = getattr(mod, attr)
    except AttributeError as e:
        raise InvalidConfiguration(f"Backend module {mod_path} has no attribute {attr}") from e
    if callable(target) and not all(hasattr(target, a) for a in ("engine", "catalogue", "compiler")):
        target = target()

    missing = [a for a in ("engine", "catalogue", "compiler") if not hasattr(target, a)]
    if missing:
        raise InvalidConfiguration(f"Backend {ref} is missing {', '.join(missing)}")
    if isinstance(target, Backend):
        return target
    logger.debug(f"Loaded backend {ref}")
    return Backend(engine=target.engine, catalogue=target.catalogue, compiler=target.compiler)
