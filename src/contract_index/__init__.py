"""contract-index: smart-contract function indexer.

Ingests verified-contract archives, compiles them with the declared solc
release and records every externally callable function's signature,
4-byte selector and literal source text in SQLite.
"""

__version__ = "0.1.0"
