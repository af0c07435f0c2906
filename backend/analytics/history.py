"""
View history: an undo stack of (selection, expansion set, camera) snapshots.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field

DEFAULT_ZOOM = 1.2
MIN_ZOOM     = 0.4
MAX_ZOOM     = 2.5


def clamp_zoom(zoom: float) -> float:
    return min(MAX_ZOOM, max(MIN_ZOOM, zoom))


@dataclass(frozen=True)
class Camera:
    x: float = 0.0
    y: float = 0.0
    zoom: float = DEFAULT_ZOOM

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}


@dataclass(frozen=True)
class ViewSnapshot:
    selected_id: str | None
    expanded: frozenset[str] = frozenset()
    camera: Camera = field(default_factory=Camera)

    def to_dict(self) -> dict:
        return {
            "selected_id": self.selected_id,
            "expanded":    sorted(self.expanded),
            "camera":      self.camera.to_dict(),
        }


class ViewHistory:
    """
    push() ignores snapshots while locked (a restore is in progress) and
    snapshots whose selection equals the one on top of the stack.
    """

    def __init__(self):
        self._stack: list[ViewSnapshot] = []
        self.locked = False

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def can_go_back(self) -> bool:
        return bool(self._stack)

    def peek(self) -> ViewSnapshot | None:
        return self._stack[-1] if self._stack else None

    def push(self, snapshot: ViewSnapshot) -> bool:
        if self.locked:
            return False
        last = self.peek()
        if last is not None and last.selected_id == snapshot.selected_id:
            return False
        self._stack.append(snapshot)
        return True

    def pop(self) -> ViewSnapshot | None:
        if not self._stack:
            return None
        return self._stack.pop()

    @contextmanager
    def lock(self):
        previous = self.locked
        self.locked = True
        try:
            yield self
        finally:
            self.locked = previous
