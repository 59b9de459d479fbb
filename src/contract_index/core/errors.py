"""contract-index error types with typed error codes.

Error code ranges:
- 1xxx: Ingest (malformed archives)
- 2xxx: Config
- 3xxx: Toolchain
- 4xxx: Extraction
- 5xxx: Store
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Ingest (1xxx)
    INGEST_METADATA_MISSING = 1001
    INGEST_METADATA_INVALID = 1002
    INGEST_DOCUMENT_INVALID = 1003

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Toolchain (3xxx)
    TOOLCHAIN_UNSUPPORTED_VERSION = 3001
    TOOLCHAIN_INSTALL_FAILED = 3002
    TOOLCHAIN_COMPILE_FAILED = 3003

    # Extraction (4xxx)
    EXTRACT_CONTRACT_NOT_FOUND = 4001
    EXTRACT_FUNCTION_NOT_FOUND = 4002
    EXTRACT_SOURCE_NOT_FOUND = 4003

    # Store (5xxx)
    STORE_CONTRACT_NOT_FOUND = 5001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class ContractIndexError(Exception):
    """Base error with structured context for logs and CLI output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'INGEST_METADATA_MISSING')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class IngestError(ContractIndexError):
    """Malformed contract archive."""

    @classmethod
    def metadata_missing(cls, folder: str) -> "IngestError":
        return cls(
            code=ErrorCode.INGEST_METADATA_MISSING,
            message=f"No metadata.json in {folder}",
            details={"folder": folder},
        )

    @classmethod
    def metadata_invalid(cls, path: str, reason: str) -> "IngestError":
        return cls(
            code=ErrorCode.INGEST_METADATA_INVALID,
            message=f"Invalid metadata at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def document_invalid(cls, name: str, reason: str) -> "IngestError":
        return cls(
            code=ErrorCode.INGEST_DOCUMENT_INVALID,
            message=f"Unparseable standard-json document {name}: {reason}",
            details={"name": name, "reason": reason},
        )


class ConfigError(ContractIndexError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )


class ToolchainError(ContractIndexError):
    """Compiler resolution or compilation failures."""

    @classmethod
    def unsupported_version(cls, version: str, reason: str) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_UNSUPPORTED_VERSION,
            message=f"Unsupported compiler version '{version}': {reason}",
            details={"version": version, "reason": reason},
        )

    @classmethod
    def install_failed(cls, version: str, reason: str) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_INSTALL_FAILED,
            message=f"Failed to install compiler {version}: {reason}",
            retryable=True,
            details={"version": version, "reason": reason},
        )

    @classmethod
    def compile_failed(cls, target: str, reason: str) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_COMPILE_FAILED,
            message=f"Compilation failed ({target}): {reason}",
            details={"target": target, "reason": reason},
        )


class ExtractionError(ContractIndexError):
    """AST lookups that could not locate a definition."""

    @classmethod
    def contract_not_found(cls, contract_name: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACT_CONTRACT_NOT_FOUND,
            message=f"Contract definition '{contract_name}' not found",
            details={"contract_name": contract_name},
        )

    @classmethod
    def function_not_found(cls, contract_name: str, function_name: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACT_FUNCTION_NOT_FOUND,
            message=f"Function '{function_name}' not found in contract '{contract_name}'",
            details={"contract_name": contract_name, "function_name": function_name},
        )

    @classmethod
    def source_not_found(cls, filename: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACT_SOURCE_NOT_FOUND,
            message=f"Source content for '{filename}' not found",
            details={"filename": filename},
        )


class StoreError(ContractIndexError):
    """Lookups against the contract store."""

    @classmethod
    def contract_not_found(cls, contract_id: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_CONTRACT_NOT_FOUND,
            message=f"Contract not found: {contract_id}",
            details={"contract_id": contract_id},
        )


class InternalError(ContractIndexError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
