"""Compiler toolchain: version resolution and standard-json compilation."""

from contract_index.toolchain.compile import (
    CompilationResult,
    CompiledContract,
    build_standard_input,
    compile_contract,
    parse_standard_output,
)
from contract_index.toolchain.compiler import (
    Compiler,
    CompilerResolver,
    SolcxCompiler,
    SolcxResolver,
    install_all_versions,
    parse_compiler_version,
)

__all__ = [
    "CompilationResult",
    "CompiledContract",
    "Compiler",
    "CompilerResolver",
    "SolcxCompiler",
    "SolcxResolver",
    "build_standard_input",
    "compile_contract",
    "install_all_versions",
    "parse_compiler_version",
    "parse_standard_output",
]
