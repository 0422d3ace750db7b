"""
Custom install recipes for tools whose packaging fits no generic strategy.

The set of recipes is closed: each supported tool is one CustomRecipe member
mapped to a module exposing ``install(path, config)``, ``uninstall(config)``
and ``already_installed()``. Adding a tool means adding a module and one
entry below.

Tool names are matched case-insensitively and ignoring ``-`` and ``_``, so
``build-tools``, ``build_tools`` and ``buildtools`` all select the same
recipe.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from toolsetkit.core.exceptions import NoCustomRecipeError
from toolsetkit.tools.recipes import buildtools, vscode


class CustomRecipe(Enum):
    """Tools with a custom recipe."""

    BUILDTOOLS = "buildtools"
    VSCODE = "vscode"

    @property
    def module(self):
        return _RECIPE_MODULES[self]


_RECIPE_MODULES = {
    CustomRecipe.BUILDTOOLS: buildtools,
    CustomRecipe.VSCODE: vscode,
}

SUPPORTED_TOOLS = tuple(recipe.value for recipe in CustomRecipe)


def normalize_name(name: str) -> str:
    """Canonical form of a tool name for recipe matching."""
    return name.lower().replace("-", "").replace("_", "")


def lookup(name: str) -> Optional[CustomRecipe]:
    """Get the recipe for ``name``, or None."""
    key = normalize_name(name)
    for recipe in CustomRecipe:
        if normalize_name(recipe.value) == key:
            return recipe
    return None


def is_supported(name: str) -> bool:
    return lookup(name) is not None


def install(name: str, path: Path, config) -> None:
    """
    Run the install recipe of ``name``.

    Raises:
        NoCustomRecipeError: If ``name`` has no recipe
    """
    recipe = lookup(name)
    if recipe is None:
        raise NoCustomRecipeError(name)
    recipe.module.install(Path(path), config)
    # The tool directory records that this root owns the recipe install.
    config.layout.tool_dir(recipe.value).mkdir(parents=True, exist_ok=True)


def uninstall(name: str, config) -> None:
    """
    Run the uninstall recipe of ``name``.

    Raises:
        NoCustomRecipeError: If ``name`` has no recipe
    """
    recipe = lookup(name)
    if recipe is None:
        raise NoCustomRecipeError(name, action="uninstall")
    recipe.module.uninstall(config)


def installed_in(layout) -> List[CustomRecipe]:
    """Recipes installed into the root of ``layout``."""
    return [recipe for recipe in CustomRecipe if layout.tool_dir(recipe.value).is_dir()]


def already_installed(name: str) -> bool:
    """Whether ``name`` is installed; False for tools without a recipe."""
    recipe = lookup(name)
    if recipe is None:
        return False
    return recipe.module.already_installed()


__all__ = [
    "CustomRecipe",
    "SUPPORTED_TOOLS",
    "normalize_name",
    "lookup",
    "is_supported",
    "install",
    "uninstall",
    "already_installed",
    "installed_in",
]
