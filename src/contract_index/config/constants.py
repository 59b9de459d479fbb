"""Configuration constants.

Archive layout names and compiler conventions. These describe the input
format and are not user-configurable; see models.py for tunables.
"""

# =============================================================================
# Archive layout
# =============================================================================

METADATA_FILE = "metadata.json"
"""Descriptor file that marks a directory as a contract archive."""

STANDARD_JSON_FILE = "contract.json"
"""Bundled sources + settings document (Etherscan verification export)."""

SOLIDITY_SINGLE_FILE = "main.sol"
"""Single Solidity source file."""

VYPER_SINGLE_FILE = "main.vy"
"""Single Vyper source file."""

SOLIDITY_EXTENSION = ".sol"
"""Default extension appended to extension-less source names."""

# =============================================================================
# Compilation
# =============================================================================

DEFAULT_PAGE_SIZE = 100
"""Contracts per orchestrator page when nothing else is configured."""

AST_OUTPUT_SELECTION = {"*": {"*": ["abi"], "": ["ast"]}}
"""Standard-JSON output selection: ABI per contract, AST per source unit."""

VYPER_LANGUAGE = "vyper"
"""Language tag (lower-cased) that marks a document as non-Solidity."""
