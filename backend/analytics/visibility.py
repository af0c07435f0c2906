"""
Visible stand-in resolution.

Maps any module to the nearest module (itself or an ancestor) that is
currently rendered. A resolver is built for one layout pass and thrown
away with it; never reuse one across changes to the expansion set.
"""
from __future__ import annotations

from collections.abc import Collection

from model import ROOT_KEY, Module


class VisibilityResolver:
    def __init__(self, modules: dict[str, Module], visible: Collection[str]):
        """
        modules: the snapshot's module map (parent pointers are followed)
        visible: module paths present in the current layout's positions
        """
        self._modules = modules
        self._visible = visible
        self._cache: dict[str, str] = {}

    def is_visible(self, module_path: str) -> bool:
        return module_path in self._visible

    def resolve(self, module_path: str | None) -> str:
        if not module_path or module_path == ROOT_KEY:
            return ROOT_KEY
        cached = self._cache.get(module_path)
        if cached is not None:
            return cached

        result = ROOT_KEY
        seen: set[str] = set()
        current = module_path
        while current and current not in seen:
            if current in self._visible:
                result = current
                break
            seen.add(current)
            module = self._modules.get(current)
            parent = module.parent if module else ""
            if not parent or parent == current:
                break
            current = parent

        self._cache[module_path] = result
        return result

    __call__ = resolve
