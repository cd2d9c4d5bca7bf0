"""Combining emitter output that targets the same artifact path."""

import os
from dataclasses import dataclass, field
from enum import Enum

from .errors import PlacementError


class Placement(str, Enum):
    PREPEND = "prepend"
    APPEND = "append"
    REPLACE = "replace"

    @classmethod
    def parse(cls, value: "Placement | str | None") -> "Placement":
        """Parse a placement value, case-insensitively; None means append."""
        if value is None or value == "":
            return cls.APPEND
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise PlacementError(
                f"unknown placement {value!r}, expected one of: prepend, append, replace"
            ) from None


@dataclass
class ArtifactFragment:
    """A piece of content produced by an emitter for one artifact path.

    An empty path means the destination the emitter was invoked for.
    """
    path: str
    content: str
    placement: Placement = Placement.APPEND


@dataclass
class _Buffer:
    prepends: list[str] = field(default_factory=list)
    content: str = ""
    appends: list[str] = field(default_factory=list)

    def render(self) -> str:
        return "".join(reversed(self.prepends)) + self.content + "".join(self.appends)


def resolve_output_path(base_path: str, raw_path: str) -> str:
    """Resolve a fragment path against the destination path."""
    path = raw_path or base_path
    if not path or os.path.isabs(path):
        return path
    if not base_path or path == base_path:
        return path
    return os.path.join(os.path.dirname(base_path), path)


class PlacementEngine:
    """Per-path buffers for one destination.

    Final content of a path is every prepend in reverse arrival order, then
    the last replace (or nothing), then every append in arrival order.

    Example:
        engine = PlacementEngine("out.ts")
        engine.add(ArtifactFragment("out.ts", "A", Placement.PREPEND))
        engine.add(ArtifactFragment("out.ts", "B", Placement.APPEND))
        engine.add(ArtifactFragment("out.ts", "C", Placement.REPLACE))
        engine.render("out.ts")  # "ACB"
    """

    def __init__(self, base_path: str = ""):
        self.base_path = base_path
        self._buffers: dict[str, _Buffer] = {}

    def add(self, fragment: ArtifactFragment):
        placement = Placement.parse(fragment.placement)
        path = resolve_output_path(self.base_path, fragment.path)
        if not path:
            raise PlacementError("artifact fragment has no path and no base path is set")
        buffer = self._buffers.setdefault(path, _Buffer())
        if placement is Placement.PREPEND:
            buffer.prepends.append(fragment.content)
        elif placement is Placement.REPLACE:
            buffer.content = fragment.content
        else:
            buffer.appends.append(fragment.content)

    def extend(self, fragments):
        for fragment in fragments:
            self.add(fragment)

    def paths(self) -> list[str]:
        """Paths in the order they were first written."""
        return list(self._buffers)

    def render(self, path: str) -> str:
        path = resolve_output_path(self.base_path, path)
        buffer = self._buffers.get(path)
        return buffer.render() if buffer else ""

    def artifacts(self) -> dict[str, str]:
        return {path: buffer.render() for path, buffer in self._buffers.items()}
