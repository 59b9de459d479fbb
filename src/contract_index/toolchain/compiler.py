"""Compiler capability and its py-solc-x implementation.

The orchestrator only sees two small protocols:

- ``CompilerResolver.resolve(version)`` -> ``Compiler``
- ``Compiler.compile_standard(input_json, allow_paths=...)`` -> solc
  standard-json output

so tests can inject canned compilers without network or filesystem
access.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import solcx
import structlog
from packaging.version import InvalidVersion, Version
from solcx.exceptions import (
    DownloadError,
    SolcError,
    SolcInstallationError,
    SolcNotInstalled,
    UnknownOption,
    UnsupportedVersionError,
)

from contract_index.core.errors import ToolchainError

logger = structlog.get_logger()

_SEMVER = re.compile(r"(\d+)\.(\d+)\.(\d+)")


def parse_compiler_version(declared: str) -> Version:
    """Normalize a declared compiler string to ``major.minor.patch``.

    ``v0.8.7+commit.e28d00a7`` and ``0.4.24-nightly.2018.5.16`` both reduce
    to their release triple.

    Raises:
        ToolchainError: No version triple can be read from ``declared``.
    """
    match = _SEMVER.search(declared.strip().lstrip("vV"))
    if match is None:
        raise ToolchainError.unsupported_version(declared, "no major.minor.patch triple")
    try:
        return Version(".".join(match.groups()))
    except InvalidVersion as e:
        raise ToolchainError.unsupported_version(declared, str(e)) from e


@runtime_checkable
class Compiler(Protocol):
    """A resolved compiler binary."""

    version: Version

    def compile_standard(
        self, input_json: dict[str, Any], *, allow_paths: Sequence[Path] = ()
    ) -> dict[str, Any]:
        """Run a standard-json compilation.

        Raises:
            ToolchainError: The compiler reported errors or could not run.
        """
        ...


@runtime_checkable
class CompilerResolver(Protocol):
    """Maps a declared version string to a usable compiler."""

    def resolve(self, version: str) -> Compiler:
        """Raises ToolchainError when the version cannot be provided."""
        ...


class SolcxCompiler:
    """solc binary managed by py-solc-x."""

    def __init__(self, version: Version) -> None:
        self.version = version

    def compile_standard(
        self, input_json: dict[str, Any], *, allow_paths: Sequence[Path] = ()
    ) -> dict[str, Any]:
        try:
            output: dict[str, Any] = solcx.compile_standard(
                input_json,
                solc_version=self.version,
                allow_paths=[str(p) for p in allow_paths] or None,
            )
        except (SolcError, SolcNotInstalled, UnknownOption) as e:
            raise ToolchainError.compile_failed(f"solc-{self.version}", str(e).strip()) from e
        return output


class SolcxResolver:
    """Installs solc releases on demand through py-solc-x.

    Installation happens at most once per version per process; concurrent
    units asking for the same version wait for the first install.
    """

    def __init__(self, *, install: bool = True) -> None:
        self._install = install
        self._lock = threading.Lock()
        self._ready: dict[Version, SolcxCompiler] = {}

    def resolve(self, version: str) -> Compiler:
        parsed = parse_compiler_version(version)
        with self._lock:
            compiler = self._ready.get(parsed)
            if compiler is None:
                self._ensure_installed(parsed)
                compiler = SolcxCompiler(parsed)
                self._ready[parsed] = compiler
        return compiler

    def _ensure_installed(self, version: Version) -> None:
        if version in solcx.get_installed_solc_versions():
            return
        if not self._install:
            raise ToolchainError.unsupported_version(str(version), "not installed")
        logger.info("solc_install_start", version=str(version))
        try:
            solcx.install_solc(version)
        except UnsupportedVersionError as e:
            raise ToolchainError.unsupported_version(str(version), str(e)) from e
        except (SolcInstallationError, DownloadError, OSError) as e:
            raise ToolchainError.install_failed(str(version), str(e)) from e
        logger.info("solc_install_done", version=str(version))


def install_all_versions() -> list[Version]:
    """Install every solc release py-solc-x can fetch; returns newly installed ones."""
    installed = set(solcx.get_installed_solc_versions())
    added: list[Version] = []
    for version in solcx.get_installable_solc_versions():
        if version in installed:
            continue
        logger.debug("solc_install_start", version=str(version))
        try:
            solcx.install_solc(version)
        except (SolcInstallationError, UnsupportedVersionError, DownloadError, OSError) as e:
            logger.warning("solc_install_failed", version=str(version), error=str(e))
            continue
        added.append(version)
    logger.info("solc_install_all_done", installed=len(added))
    return added
