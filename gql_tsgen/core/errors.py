"""Exception hierarchy for the code generator.

Every fatal condition raised by the core derives from CodegenError so the
CLI can report it uniformly.
"""


class CodegenError(Exception):
    """Base class for all code generation errors."""


class ConfigError(CodegenError):
    """Raised when a configuration file cannot be read or validated."""


class SchemaLoadError(CodegenError):
    """Raised when schema sources cannot be parsed or built."""


class SchemaMergeConflict(SchemaLoadError):
    """Two schema sources define the same type, field or directive differently."""

    def __init__(
        self,
        type_name: str,
        left_source: str,
        right_source: str,
        conflict_type: str,
        details: str,
    ):
        self.type_name = type_name
        self.left_source = left_source
        self.right_source = right_source
        self.conflict_type = conflict_type
        self.details = details
        super().__init__(
            f"schema conflict on type {type_name!r} between {left_source} and "
            f"{right_source}: {conflict_type} conflict - {details}"
        )


class DocumentValidationError(CodegenError):
    """Raised when an executable document is invalid against the schema."""

    def __init__(self, origin: str, messages: list[str]):
        self.origin = origin
        self.messages = messages
        joined = "\n  ".join(messages)
        super().__init__(f"invalid document {origin}:\n  {joined}")


class DuplicateFragmentError(DocumentValidationError):
    """Raised when two documents define a fragment with the same name."""

    def __init__(self, name: str, first_origin: str, second_origin: str):
        self.name = name
        self.first_origin = first_origin
        super().__init__(
            second_origin,
            [f"fragment {name!r} is already defined in {first_origin}"],
        )


class FragmentResolutionError(CodegenError):
    """Raised when a fragment spread names an unknown fragment."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown fragment {name!r}")


class SynthesisError(CodegenError):
    """Raised when a selection cannot be mapped onto the schema."""


class EmitterError(CodegenError):
    """Raised when an emitter receives malformed options."""


class PlacementError(CodegenError):
    """Raised for an unknown artifact placement value."""


class GenerationCancelled(CodegenError):
    """Raised when the cancellation token fires during generation."""


class GenerationError(CodegenError):
    """A fatal error annotated with the destination and emitter that raised it."""

    def __init__(self, destination: str, emitter: str | None, cause: Exception):
        self.destination = destination
        self.emitter = emitter
        self.cause = cause
        where = f"{destination} [{emitter}]" if emitter else destination
        super().__init__(f"generating {where}: {cause}")
