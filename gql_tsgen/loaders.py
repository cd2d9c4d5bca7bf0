"""Schema acquisition, document scanning and file writing.

These collaborators sit outside the core: they turn config entries into
SchemaSource buffers and Document objects, and write finished artifacts.
"""

import glob
import json
import logging
import os
import re
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Any

import httpx
from graphql import build_client_schema, get_introspection_query, print_schema

from .config import SchemaSourceConfig
from .core.documents import Document, load_document
from .core.errors import DocumentValidationError, SchemaLoadError
from .core.merger import ConflictPolicy
from .core.schema import SchemaModel, SchemaSource, load_schema

logger = logging.getLogger(__name__)

SCHEMA_EXTENSIONS = (".graphql", ".graphqls", ".gql")
DOCUMENT_EXTENSIONS = (".graphql", ".gql")
SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mts", ".cts")
ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz")


def extract_archive(archive_path: Path) -> str:
    """Extract archive to temp directory. Returns path to extracted content."""
    temp_dir = tempfile.mkdtemp()
    if archive_path.suffix == ".zip":
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            zip_ref.extractall(temp_dir)
    elif archive_path.name.endswith((".tar.gz", ".tgz")):
        with tarfile.open(archive_path, "r:gz") as tar_ref:
            tar_ref.extractall(temp_dir, filter="data")
    else:
        shutil.rmtree(temp_dir)
        raise ValueError(f"Unsupported archive format: {archive_path.suffix}")
    return temp_dir


def collect_schema_files(path: str) -> list[str]:
    """Collect schema files from a file, a directory or a glob pattern."""
    if glob.has_magic(path):
        return sorted(p for p in glob.glob(path, recursive=True) if p.endswith(SCHEMA_EXTENSIONS))
    if os.path.isfile(path):
        return [path]
    files = []
    for root, _, filenames in os.walk(path):
        for filename in filenames:
            if filename.endswith(SCHEMA_EXTENSIONS):
                files.append(os.path.join(root, filename))
    return sorted(files)


class IntrospectionClient:
    """Fetches a schema from a GraphQL endpoint by running the introspection query."""

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.timeout = timeout
        self.transport = transport

    def fetch(self) -> dict[str, Any]:
        """Return the 'data' portion of the introspection response.

        Raises:
            SchemaLoadError: on HTTP errors or a response carrying GraphQL errors
        """
        payload = {"query": get_introspection_query(descriptions=True)}
        try:
            with httpx.Client(timeout=self.timeout, headers=self.headers, transport=self.transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            raise SchemaLoadError(f"failed to fetch schema from {self.url}: {e}") from e
        except ValueError as e:
            raise SchemaLoadError(f"invalid JSON from {self.url}: {e}") from e

        if result.get("errors"):
            error_messages = "; ".join(e.get("message", str(e)) for e in result["errors"])
            raise SchemaLoadError(f"introspection of {self.url} failed: {error_messages}")
        if not result.get("data"):
            raise SchemaLoadError(f"introspection of {self.url} returned no data")
        return result["data"]


def introspection_to_sdl(data: dict[str, Any], label: str) -> str:
    """Convert an introspection result (with or without a 'data' envelope) to SDL."""
    if "data" in data and "__schema" not in data:
        data = data["data"]
    try:
        return print_schema(build_client_schema(data))
    except (TypeError, KeyError, ValueError) as e:
        raise SchemaLoadError(f"invalid introspection result {label}: {e}") from e


class SchemaLoader:
    """Loads and merges the configured schema sources.

    Example:
        loader = SchemaLoader(base_dir="project")
        schema = loader.load([SchemaSourceConfig(path="schema.graphql")])
    """

    def __init__(
        self,
        base_dir: str = ".",
        policy: ConflictPolicy | str = ConflictPolicy.ERROR,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_dir = base_dir
        self.policy = policy
        self.transport = transport

    def load(self, sources: list[SchemaSourceConfig]) -> SchemaModel:
        buffers: list[SchemaSource] = []
        for source in sources:
            buffers.extend(self.read(source))
        return load_schema(buffers, self.policy)

    def read(self, source: SchemaSourceConfig) -> list[SchemaSource]:
        """Read one configured source into named SDL buffers."""
        if source.kind == "url":
            client = IntrospectionClient(source.url, source.headers, source.timeout, self.transport)
            logger.info("Fetching schema from %s", source.url)
            return [SchemaSource(source.url, introspection_to_sdl(client.fetch(), source.url))]

        path = self._resolve(source.path)
        if source.kind == "introspection":
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise SchemaLoadError(f"cannot read introspection file {source.path}: {e}") from e
            return [SchemaSource(source.path, introspection_to_sdl(data, source.path))]

        if path.lower().endswith(ARCHIVE_SUFFIXES) and os.path.isfile(path):
            temp_dir = extract_archive(Path(path))
            try:
                return self._read_files(temp_dir, label_root=temp_dir)
            finally:
                shutil.rmtree(temp_dir)
        return self._read_files(path)

    def _read_files(self, path: str, label_root: str | None = None) -> list[SchemaSource]:
        files = collect_schema_files(path)
        if not files:
            raise SchemaLoadError(f"no schema files found at {path}")
        buffers = []
        for file_path in files:
            label = os.path.relpath(file_path, label_root) if label_root else file_path
            with open(file_path, encoding="utf-8") as f:
                buffers.append(SchemaSource(label, f.read()))
        return buffers

    def _resolve(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.join(self.base_dir, path)


# A tag (gql`...`, graphql(`...`)) or a /* GraphQL */ comment, then a template literal.
TEMPLATE_PATTERN = re.compile(
    r"(?:\b(?:gql|graphql)\s*(?:\(\s*)?|/\*\s*GraphQL\s*\*/\s*)`((?:\\.|\$\{[^}]*\}|[^`\\])*)`",
)
INTERPOLATION_PATTERN = re.compile(r"\$\{[^}]*\}")


class SourceExtractor:
    """Pulls GraphQL documents out of JavaScript and TypeScript sources."""

    def can_extract(self, file_path: str) -> bool:
        return file_path.endswith(SOURCE_EXTENSIONS)

    def extract(self, file_path: str, content: str) -> list[tuple[str, str]]:
        """Return (file_path, graphql_text) for every embedded document, in source order."""
        results = []
        for match in TEMPLATE_PATTERN.finditer(content):
            text = INTERPOLATION_PATTERN.sub("", match.group(1))
            text = text.replace("\\`", "`")
            if text.strip():
                results.append((file_path, text))
        return results


class DocumentLoader:
    """Finds document files by glob and loads every document they contain."""

    def __init__(
        self,
        base_dir: str = ".",
        extractor: SourceExtractor | None = None,
        lenient: bool = False,
    ):
        self.base_dir = base_dir
        self.extractor = extractor or SourceExtractor()
        self.lenient = lenient
        self.warnings: list[str] = []

    def find(self, includes: list[str], excludes: list[str] | None = None) -> list[str]:
        """Paths matching any include and no exclude, sorted, relative to base_dir."""
        excluded: set[str] = set()
        for pattern in excludes or []:
            excluded.update(self._glob(pattern))
        matched: set[str] = set()
        for pattern in includes:
            matched.update(self._glob(pattern))
        return sorted(matched - excluded)

    def _glob(self, pattern: str) -> list[str]:
        root = Path(self.base_dir)
        if os.path.isabs(pattern):
            return [p for p in glob.glob(pattern, recursive=True) if os.path.isfile(p)]
        return [
            os.path.relpath(p, root)
            for p in glob.glob(str(root / pattern), recursive=True)
            if os.path.isfile(p)
        ]

    def read(self, file_path: str) -> list[tuple[str, str]]:
        """Return the (origin, text) pairs of one file."""
        full_path = file_path if os.path.isabs(file_path) else os.path.join(self.base_dir, file_path)
        with open(full_path, encoding="utf-8") as f:
            content = f.read()
        if file_path.endswith(DOCUMENT_EXTENSIONS):
            return [(file_path, content)]
        if self.extractor.can_extract(file_path):
            return self.extractor.extract(file_path, content)
        logger.debug("Skipping unsupported document file %s", file_path)
        return []

    def load(self, schema: SchemaModel, includes: list[str], excludes: list[str] | None = None) -> list[Document]:
        documents = []
        for file_path in self.find(includes, excludes):
            for origin, text in self.read(file_path):
                try:
                    documents.append(load_document(schema, text, origin))
                except DocumentValidationError as e:
                    if not self.lenient:
                        raise
                    message = f"skipping document {origin}: {e}"
                    logger.warning(message)
                    self.warnings.append(message)
        logger.debug("Loaded %d document(s)", len(documents))
        return documents


class FileWriter:
    """Writes artifacts, creating parent directories."""

    def __init__(self, base_dir: str = "."):
        self.base_dir = base_dir

    def write(self, path: str, content: bytes | str) -> str:
        full_path = Path(path) if os.path.isabs(path) else Path(self.base_dir) / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        full_path.write_bytes(content)
        return str(full_path)
