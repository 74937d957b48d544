"""Scenario file loading: import a ``.py`` file and pick its scenario."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from checkrun._internal.errors import ScenarioError
from checkrun._internal.logging import get_logger
from checkrun.dsl.scenario import ScenarioDefinition

if TYPE_CHECKING:
    from types import ModuleType

logger = get_logger("dsl.loader")


def _import_file(path: Path) -> ModuleType:
    """Execute ``path`` as a fresh module, replacing any earlier import of it."""
    module_name = f"checkrun_scenario_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Could not create module spec for: {path}"
        raise ScenarioError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        msg = f"Failed to import scenario file {path}: {exc}"
        raise ScenarioError(msg) from exc
    return module


def load_scenario(file_path: str | Path, name: str | None = None) -> ScenarioDefinition:
    """Load a scenario from a Python file.

    A file may define several ``@scenario`` bodies. Without ``name`` it
    must define exactly one; with ``name`` the scenario of that name is
    returned.

    Args:
        file_path: Path to the Python scenario file.
        name: Scenario name to select when the file defines several.

    Returns:
        The selected ``ScenarioDefinition``.

    Raises:
        ScenarioError: If the file is missing, not a ``.py`` file, fails to
            import, defines no scenario, defines several and ``name`` is
            None, or defines none called ``name``.
    """
    path = Path(file_path)
    if not path.is_file():
        msg = f"Scenario file not found: {path}"
        raise ScenarioError(msg)
    if path.suffix != ".py":
        msg = f"Scenario file must be a .py file, got: {path}"
        raise ScenarioError(msg)

    module = _import_file(path)
    by_name = {
        obj.name: obj for obj in vars(module).values() if isinstance(obj, ScenarioDefinition)
    }

    if not by_name:
        msg = f"No @scenario-decorated function found in {path}"
        raise ScenarioError(msg)

    if name is not None:
        if name not in by_name:
            msg = f"Scenario {name!r} not found in {path}; available: {sorted(by_name)}"
            raise ScenarioError(msg)
        return by_name[name]

    if len(by_name) > 1:
        msg = (
            f"{path} defines {len(by_name)} scenarios {sorted(by_name)}; "
            f"choose one with --scenario"
        )
        raise ScenarioError(msg)

    (definition,) = by_name.values()
    logger.debug("Loaded scenario %r from %s", definition.name, path)
    return definition
