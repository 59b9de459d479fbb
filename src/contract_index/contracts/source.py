"""Operations shared by every ContractSource variant.

Each function matches exhaustively on the closed set of variants:
identity hashing, file enumeration, standard-json parsing and
materialization to disk.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path, PurePath, PurePosixPath
from typing import Any

from contract_index.config.constants import SOLIDITY_EXTENSION
from contract_index.contracts.hashing import multi_hash, simple_hash
from contract_index.contracts.models import (
    ContractSource,
    MultiSolidity,
    SingleSolidity,
    SourceFile,
    StandardJson,
    VyperSingle,
)
from contract_index.core.errors import IngestError


@dataclass(frozen=True)
class StandardJsonDocument:
    """Parsed form of a standard-json verification document."""

    sources: list[SourceFile]
    language: str | None = None
    name: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)


def normalize_line_endings(content: str) -> str:
    """CRLF -> LF. Compiler input and source slicing both use this form."""
    return content.replace("\r\n", "\n")


def identity_hash(source: ContractSource) -> str:
    """Whitespace-insensitive fingerprint of the source content."""
    match source:
        case SingleSolidity(file=file) | VyperSingle(file=file) | StandardJson(file=file):
            return simple_hash(file.content)
        case MultiSolidity(files=files):
            return multi_hash(f.content for f in files)
    raise TypeError(f"Unknown contract source: {type(source).__name__}")


def _unwrap_document(content: str) -> str:
    # Etherscan wraps standard-json SourceCode fields in an extra pair of braces
    text = content.strip()
    if text.startswith("{{") and text.endswith("}}"):
        return text[1:-1]
    return text


def parse_standard_json(file: SourceFile) -> StandardJsonDocument:
    """Parse the embedded document of a StandardJson source.

    Accepts the full ``{"language", "sources", "settings"}`` shape and the
    bare ``{name: {"content": ...}}`` map Etherscan uses for multi-file
    verifications without settings.

    Raises:
        IngestError: The document is not valid JSON or has no source map.
    """
    try:
        raw = json.loads(_unwrap_document(file.content))
    except json.JSONDecodeError as e:
        raise IngestError.document_invalid(file.name, str(e)) from e

    if not isinstance(raw, dict):
        raise IngestError.document_invalid(file.name, "document is not a JSON object")

    if "sources" in raw:
        source_map = raw["sources"]
        settings = raw.get("settings") or {}
        # Etherscan's own export misspells the key
        language = raw.get("language") or raw.get("langauge")
        name = raw.get("name")
    else:
        source_map = raw
        settings = {}
        language = None
        name = None

    if not isinstance(source_map, dict) or not source_map:
        raise IngestError.document_invalid(file.name, "missing 'sources' map")
    if not isinstance(settings, dict):
        raise IngestError.document_invalid(file.name, "'settings' is not an object")

    sources: list[SourceFile] = []
    for source_name, entry in source_map.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("content"), str):
            raise IngestError.document_invalid(
                file.name, f"source '{source_name}' has no string 'content'"
            )
        sources.append(SourceFile(name=source_name, content=entry["content"]))

    return StandardJsonDocument(sources=sources, language=language, name=name, settings=settings)


def enumerate_files(source: ContractSource) -> list[SourceFile]:
    """Constituent source files; standard-json documents are expanded."""
    match source:
        case SingleSolidity(file=file) | VyperSingle(file=file):
            return [file]
        case MultiSolidity(files=files):
            return list(files)
        case StandardJson(file=file):
            return parse_standard_json(file).sources
    raise TypeError(f"Unknown contract source: {type(source).__name__}")


def declared_language(source: ContractSource) -> str:
    """Lower-cased source language: ``solidity`` or ``vyper``."""
    match source:
        case SingleSolidity() | MultiSolidity():
            return "solidity"
        case VyperSingle():
            return "vyper"
        case StandardJson(file=file):
            language = parse_standard_json(file).language
            return (language or "solidity").lower()
    raise TypeError(f"Unknown contract source: {type(source).__name__}")


def sanitize_path(name: str) -> PurePosixPath:
    """Relative path for an untrusted source name.

    Parent-directory components are dropped and absolute paths (including
    Windows drive anchors) are re-rooted, so joining the result onto a
    directory never escapes it.
    """
    pure = PurePath(name.replace("\\", "/"))
    parts = [p for p in pure.parts if p not in ("..", ".") and p != pure.anchor]
    # Drive letters survive PurePosixPath parsing as "C:" components
    parts = [p for p in parts if not (len(p) == 2 and p[1] == ":")]
    return PurePosixPath(*parts) if parts else PurePosixPath()


def _resolve_names(files: list[SourceFile]) -> list[PurePosixPath]:
    sanitized = [sanitize_path(f.name) for f in files]
    claimed = set(sanitized)
    resolved: list[PurePosixPath] = []
    for path in sanitized:
        if path.name and not path.suffix:
            with_ext = path.with_suffix(SOLIDITY_EXTENSION)
            if with_ext not in claimed:
                path = with_ext
        resolved.append(path)
    return resolved


def source_unit_names(files: list[SourceFile]) -> list[str]:
    """Names the compiler sees for ``files``.

    Names stay as written except where materialization appends ``.sol``, so
    an import of ``./IERC20.sol`` finds a source archived as ``IERC20``.
    """
    names: list[str] = []
    for entry, resolved in zip(files, _resolve_names(files), strict=True):
        appended = resolved.suffix == SOLIDITY_EXTENSION and not sanitize_path(entry.name).suffix
        names.append(entry.name + SOLIDITY_EXTENSION if appended else entry.name)
    return names


def write_entries(target_dir: Path, files: list[SourceFile]) -> list[tuple[SourceFile, Path]]:
    """Write files under ``target_dir`` and return (file, written path) pairs."""
    target_dir.mkdir(parents=True, exist_ok=True)
    written: list[tuple[SourceFile, Path]] = []
    for entry, rel_path in zip(files, _resolve_names(files), strict=True):
        if not rel_path.name:
            continue
        dest = target_dir / rel_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(entry.content, encoding="utf-8", newline="")
        written.append((entry, dest))
    return written


def materialize(source: ContractSource, target_dir: Path) -> list[Path]:
    """Write every enumerated file of ``source`` below ``target_dir``."""
    return [path for _, path in write_entries(target_dir, enumerate_files(source))]
