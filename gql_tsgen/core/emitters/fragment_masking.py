"""Fragment masking helpers: FragmentType, the unmask function and isFragmentReady."""

from ..placement import ArtifactFragment
from .base import EmitContext

_FRAGMENT = "FragmentType<DocumentTypeDecoration<TType, any>>"

# (comment, argument type, return type) of each unmask overload, in order.
UNMASK_OVERLOADS = (
    ("return non-nullable if `fragmentType` is non-nullable", _FRAGMENT, "TType"),
    ("return nullable if `fragmentType` is undefined", f"{_FRAGMENT} | undefined", "TType | undefined"),
    ("return nullable if `fragmentType` is nullable", f"{_FRAGMENT} | null", "TType | null"),
    (
        "return nullable if `fragmentType` is nullable or undefined",
        f"{_FRAGMENT} | null | undefined",
        "TType | null | undefined",
    ),
    ("return array of non-nullable if `fragmentType` is array of non-nullable", f"Array<{_FRAGMENT}>", "Array<TType>"),
    (
        "return array of nullable if `fragmentType` is array of nullable",
        f"Array<{_FRAGMENT}> | null | undefined",
        "Array<TType> | null | undefined",
    ),
    (
        "return readonly array of non-nullable if `fragmentType` is array of non-nullable",
        f"ReadonlyArray<{_FRAGMENT}>",
        "ReadonlyArray<TType>",
    ),
    (
        "return readonly array of nullable if `fragmentType` is array of nullable",
        f"ReadonlyArray<{_FRAGMENT}> | null | undefined",
        "ReadonlyArray<TType> | null | undefined",
    ),
)


class FragmentMaskingEmitter:
    name = "fragment-masking"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        overloads = [
            {"comment": comment, "argument": argument, "result": result}
            for comment, argument, result in UNMASK_OVERLOADS
        ]
        content = ctx.render_template(
            "fragment_masking.ts.j2",
            overloads=overloads,
            string_mode=ctx.options.is_string_document_mode,
        )
        return [ArtifactFragment("", content + "\n")]
