"""Scalar mapping for TypeScript code generation.

Maps GraphQL scalars to the TypeScript types used in generated code. Each
scalar has an input variant (used for variables and input objects) and an
output variant (used for results).

Example usage:
    from gql_tsgen.core.scalars import ScalarMap

    scalars = ScalarMap({"DateTime": "string", "Upload": {"input": "File", "output": "never"}})
    scalars.render("DateTime", "output")  # "string"
    scalars.render("Upload", "input")  # "File"
    scalars.render("Unknown", "output")  # "any"
"""

from dataclasses import dataclass
from typing import Any, Iterable, Literal

Mode = Literal["input", "output"]

DEFAULT_SCALAR_TYPE = "any"

BUILTIN_SCALARS = {
    "ID": "string",
    "String": "string",
    "Int": "number",
    "Float": "number",
    "Boolean": "boolean",
}


@dataclass(frozen=True)
class ScalarMapping:
    """TypeScript types of one scalar in input and output position."""
    input: str
    output: str

    @classmethod
    def coerce(cls, value: Any) -> "ScalarMapping":
        """Build a mapping from a config entry (a string or an {input, output} dict)."""
        if isinstance(value, ScalarMapping):
            return value
        if isinstance(value, str):
            return cls(input=value, output=value)
        if isinstance(value, dict):
            output = value.get("output") or value.get("input")
            input_ = value.get("input") or output
            if isinstance(input_, str) and isinstance(output, str):
                return cls(input=input_, output=output)
        raise ValueError(f"invalid scalar mapping: {value!r}")


class ScalarMap:
    """Lookup table from GraphQL scalar name to TypeScript type.

    Built-in scalars are always present, user entries override them and
    anything else resolves to the default type.

    Example:
        scalars = ScalarMap({"Date": "string"}, default="unknown")
        scalars.has("Date")  # True
        scalars.render("JSON", "output")  # "unknown"
    """

    def __init__(self, overrides: dict[str, Any] | None = None, default: str = DEFAULT_SCALAR_TYPE):
        self.default = default
        self._mappings: dict[str, ScalarMapping] = {}
        self._register_defaults()
        for name, value in (overrides or {}).items():
            self.register(name, value)

    def _register_defaults(self):
        for name, ts_type in BUILTIN_SCALARS.items():
            self.register(name, ts_type)

    def register(self, scalar_name: str, mapping: Any):
        """Register (or override) the mapping for a scalar."""
        self._mappings[scalar_name] = ScalarMapping.coerce(mapping)

    def get(self, scalar_name: str) -> ScalarMapping | None:
        """Get the mapping for a scalar, or None if not registered."""
        return self._mappings.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        """Check if a mapping is registered for a scalar."""
        return scalar_name in self._mappings

    def render(self, scalar_name: str, mode: Mode = "output") -> str:
        """Return the TypeScript type for a scalar in the given position."""
        mapping = self._mappings.get(scalar_name)
        if mapping is None:
            return self.default
        return mapping.input if mode == "input" else mapping.output

    def resolve(self, scalar_names: Iterable[str]) -> dict[str, ScalarMapping]:
        """Mappings for the given scalars, in the given order, defaults filled in."""
        default = ScalarMapping(self.default, self.default)
        return {name: self._mappings.get(name, default) for name in scalar_names}

    def missing(self, scalar_names: Iterable[str]) -> list[str]:
        """Scalars without a registered mapping, sorted by name."""
        return sorted({name for name in scalar_names if name not in self._mappings})
