"""Extension points around a generator run.

A pre-generate hook sees the loaded documents before aggregation; a
post-generate hook sees every finished artifact after placement.

Example:
    from gql_tsgen.hooks import PreGenerateHook, PostGenerateHook

    # Pre-generation hook to drop generated fixtures
    class SkipFixtures(PreGenerateHook):
        def pre_generate(self, documents):
            return [d for d in documents if "fixtures/" not in d.origin]

    # Prepend a license banner to every artifact
    class LicenseBanner(PostGenerateHook):
        def post_generate(self, path, content):
            return "// Copyright 2024 My Company\\n\\n" + content
"""

from typing import Protocol, runtime_checkable

from .core.documents import Document


@runtime_checkable
class PreGenerateHook(Protocol):
    """Protocol for pre-generation hooks.

    Pre-generation hooks receive the loaded documents before they are
    aggregated and validated together. The returned list is used instead.

    Example:
        class OnlyQueries(PreGenerateHook):
            def pre_generate(self, documents: list[Document]) -> list[Document]:
                return [d for d in documents if d.origin.endswith(".graphql")]
    """

    def pre_generate(self, documents: list[Document]) -> list[Document]:
        """Called before document aggregation.

        Args:
            documents: The loaded documents in load order

        Returns:
            The (possibly filtered) documents to generate from
        """
        ...


@runtime_checkable
class PostGenerateHook(Protocol):
    """Protocol for post-generation hooks.

    Post-generation hooks receive the final content of each artifact and
    can transform it before it's returned to the caller.

    Example:
        class StripBlankLines(PostGenerateHook):
            def post_generate(self, path: str, content: str) -> str:
                return "\\n".join(line for line in content.splitlines() if line) + "\\n"
    """

    def post_generate(self, path: str, content: str) -> str:
        """Called after placement for each artifact.

        Args:
            path: The artifact path (e.g., "src/gql/graphql.ts")
            content: The generated content

        Returns:
            The (possibly transformed) content
        """
        ...


class AddHeaderHook:
    """Prepends a fixed header, optionally only to paths with given suffixes.

    Example:
        hook = AddHeaderHook("// Auto-generated - do not edit", suffixes=(".ts",))
    """

    def __init__(self, header: str, suffixes: tuple[str, ...] = ()):
        self.header = header
        self.suffixes = suffixes

    def post_generate(self, path: str, content: str) -> str:
        """Return content with the header and a blank line in front."""
        if self.suffixes and not path.endswith(self.suffixes):
            return content
        if not self.header.endswith("\n"):
            header = self.header + "\n\n"
        else:
            header = self.header + "\n"
        return header + content


class FilterDocumentsHook:
    """Built-in hook to filter documents by origin path prefix/suffix.

    Example:
        # Ignore documents from test files
        hook = FilterDocumentsHook(exclude_suffix=".test.tsx")
    """

    def __init__(
        self,
        exclude_prefix: str | None = None,
        exclude_suffix: str | None = None,
        include_prefix: str | None = None,
        include_suffix: str | None = None,
    ):
        self.exclude_prefix = exclude_prefix
        self.exclude_suffix = exclude_suffix
        self.include_prefix = include_prefix
        self.include_suffix = include_suffix

    def _should_include(self, origin: str) -> bool:
        if self.exclude_prefix and origin.startswith(self.exclude_prefix):
            return False
        if self.exclude_suffix and origin.endswith(self.exclude_suffix):
            return False
        if self.include_prefix and not origin.startswith(self.include_prefix):
            return False
        if self.include_suffix and not origin.endswith(self.include_suffix):
            return False
        return True

    def pre_generate(self, documents: list[Document]) -> list[Document]:
        return [d for d in documents if self._should_include(d.origin)]


class HookRunner:
    """Ordered pre- and post-generate hooks for one run."""

    def __init__(self):
        self.pre_hooks: list[PreGenerateHook] = []
        self.post_hooks: list[PostGenerateHook] = []

    def add_pre_hook(self, hook: PreGenerateHook):
        self.pre_hooks.append(hook)

    def add_post_hook(self, hook: PostGenerateHook):
        self.post_hooks.append(hook)

    def run_pre_hooks(self, documents: list[Document]) -> list[Document]:
        """Run all pre-generation hooks in order."""
        for hook in self.pre_hooks:
            documents = hook.pre_generate(documents)
        return documents

    def run_post_hooks(self, path: str, content: str) -> str:
        """Run all post-generation hooks in order."""
        for hook in self.post_hooks:
            content = hook.post_generate(path, content)
        return content
