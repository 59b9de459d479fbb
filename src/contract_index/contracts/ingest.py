"""Archive ingestion: directory trees of contracts -> PlainContract values.

A directory is a contract archive when it directly contains
``metadata.json``. The source shape is picked in a fixed priority order:

1. ``contract.json`` (standard-json document)
2. ``main.sol`` (single Solidity file)
3. ``main.vy`` (single Vyper file)
4. every ``*.sol`` file in the directory (multi-file Solidity)

A directory holding both a document and loose files therefore always
resolves to the document.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import structlog
from pydantic import ValidationError

from contract_index.config.constants import (
    METADATA_FILE,
    SOLIDITY_EXTENSION,
    SOLIDITY_SINGLE_FILE,
    STANDARD_JSON_FILE,
    VYPER_SINGLE_FILE,
)
from contract_index.contracts.models import (
    ContractSource,
    Metadata,
    MultiSolidity,
    PlainContract,
    SingleSolidity,
    SourceFile,
    StandardJson,
    VyperSingle,
)
from contract_index.contracts.source import parse_standard_json
from contract_index.core.errors import IngestError

logger = structlog.get_logger()


def _read_text(path: Path) -> str:
    # newline="" keeps CRLF intact; extraction normalizes it later
    with path.open(encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def load_metadata(folder: Path) -> Metadata:
    path = folder / METADATA_FILE
    if not path.is_file():
        raise IngestError.metadata_missing(str(folder))
    try:
        return Metadata.model_validate_json(_read_text(path))
    except ValidationError as e:
        raise IngestError.metadata_invalid(str(path), str(e)) from e


def read_source(folder: Path) -> ContractSource:
    """Pick the source shape of an archive folder by priority."""
    document = folder / STANDARD_JSON_FILE
    if document.is_file():
        return StandardJson(file=SourceFile(name=STANDARD_JSON_FILE, content=_read_text(document)))

    solidity = folder / SOLIDITY_SINGLE_FILE
    if solidity.is_file():
        return SingleSolidity(
            file=SourceFile(name=SOLIDITY_SINGLE_FILE, content=_read_text(solidity))
        )

    vyper = folder / VYPER_SINGLE_FILE
    if vyper.is_file():
        return VyperSingle(file=SourceFile(name=VYPER_SINGLE_FILE, content=_read_text(vyper)))

    files = [
        SourceFile(name=path.name, content=_read_text(path))
        for path in sorted(folder.iterdir())
        if path.is_file() and path.suffix == SOLIDITY_EXTENSION
    ]
    return MultiSolidity(files=tuple(files))


def load_contract(folder: Path) -> PlainContract:
    """Parse one archive folder.

    Raises:
        IngestError: metadata.json is missing or invalid, or the
            standard-json document cannot be parsed.
    """
    metadata = load_metadata(folder)
    source = read_source(folder)
    if isinstance(source, StandardJson):
        parse_standard_json(source.file)
    return PlainContract(metadata=metadata, source=source)


def is_contract_folder(folder: Path) -> bool:
    return (folder / METADATA_FILE).is_file()


def iter_contracts(root: Path, *, ignore_errors: bool = False) -> Iterator[PlainContract]:
    """Yield every contract archive below ``root`` (symlinks followed).

    Args:
        root: Directory tree of archives.
        ignore_errors: Log and skip malformed folders instead of raising.

    Raises:
        IngestError: A folder is malformed and ``ignore_errors`` is False.
    """
    for dirpath, dirnames, _filenames in os.walk(root, followlinks=True):
        dirnames.sort()
        folder = Path(dirpath)
        if not is_contract_folder(folder):
            continue
        try:
            contract = load_contract(folder)
        except (IngestError, OSError) as e:
            if not ignore_errors:
                raise
            logger.warning("contract_ingest_failed", folder=str(folder), error=str(e))
            continue
        yield contract
