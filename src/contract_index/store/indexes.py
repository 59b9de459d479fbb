"""Additional index creation for query performance.

These indexes complement the basic indexes defined in SQLModel Field()
declarations. Call create_additional_indexes() after Database.create_all().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import text

if TYPE_CHECKING:
    from sqlalchemy import Engine


ADDITIONAL_INDEXES = [
    # Per-contract function listings
    'CREATE INDEX IF NOT EXISTS idx_function_composite'
    ' ON "function"(contract_id, selector, signature)',
    # Selector lookups across the corpus, ordered by contract
    'CREATE INDEX IF NOT EXISTS idx_function_selector ON "function"(selector, contract_id)',
]


def create_additional_indexes(engine: Engine) -> None:
    """Create the composite indexes that Field(index=True) cannot express."""
    with engine.connect() as conn:
        for sql in ADDITIONAL_INDEXES:
            conn.execute(text(sql))
        conn.commit()
