"""Function indexing: compile orchestration and AST-based extraction."""

from contract_index.indexing.extractor import (
    FunctionExtractor,
    canonical_type,
    function_selector,
    function_signature,
)
from contract_index.indexing.orchestrator import (
    CompilationOrchestrator,
    IndexRunStats,
    UnitOutcome,
)
from contract_index.indexing.preprocess import PreprocessStats, preprocess

__all__ = [
    "CompilationOrchestrator",
    "FunctionExtractor",
    "IndexRunStats",
    "PreprocessStats",
    "UnitOutcome",
    "canonical_type",
    "function_selector",
    "function_signature",
    "preprocess",
]
