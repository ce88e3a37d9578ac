"""
Go module path helpers.

``go test`` runs from the module root against a package path relative to it,
so every command needs the root (the nearest directory holding ``go.mod``) and
the package target inside it.
"""

import os
from pathlib import Path
from typing import Union

from gopick.exceptions import ModuleRootNotFoundError

PathLike = Union[str, os.PathLike]

GO_MOD = "go.mod"


def target_directory(target: PathLike) -> Path:
    """Directory a target refers to: the target itself or a file's parent."""
    target = Path(target)
    if target.is_file() or (target.suffix and not target.exists()):
        return target.parent
    return target


def find_module_root(target: PathLike) -> Path:
    """Walk up from ``target`` to the nearest directory containing ``go.mod``.

    Raises:
        ModuleRootNotFoundError: If no ancestor has a go.mod
    """
    start = target_directory(Path(target).resolve())
    for directory in (start, *start.parents):
        if (directory / GO_MOD).is_file():
            return directory
    raise ModuleRootNotFoundError(f"could not find module root above {target}")


def package_target(target: PathLike, module_root: PathLike, has_name: bool) -> str:
    """Package argument for ``go test``, relative to the module root.

    When the target is the module root itself and no test name is given, every
    package is run (``./...``).
    """
    directory = target_directory(Path(target).resolve())
    relative = os.path.relpath(directory, Path(module_root).resolve())
    if relative == ".":
        return "./..." if not has_name else "."
    return "./" + Path(relative).as_posix()


def relative_to_module(path: PathLike, module_root: PathLike) -> str:
    """``path`` relative to the module root, as used in dlv breakpoints."""
    return Path(os.path.relpath(Path(path).resolve(), Path(module_root).resolve())).as_posix()
