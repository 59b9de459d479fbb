"""Tests for config/models.py validators."""

import pytest
from pydantic import ValidationError

from contract_index.config.models import (
    ContractIndexConfig,
    IndexerConfig,
    IngestConfig,
    LogOutputConfig,
)


class TestIndexerConfig:
    def test_defaults(self) -> None:
        config = IndexerConfig()

        assert config.page_size == 100
        assert config.concurrency is None
        assert config.unit_timeout_sec is None

    @pytest.mark.parametrize("page_size", [0, -1])
    def test_rejects_non_positive_page_size(self, page_size: int) -> None:
        with pytest.raises(ValidationError):
            IndexerConfig(page_size=page_size)

    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValidationError):
            IndexerConfig(concurrency=0)


class TestIngestConfig:
    def test_rejects_zero_batch_size(self) -> None:
        with pytest.raises(ValidationError):
            IngestConfig(batch_size=0)


class TestLogOutputConfig:
    def test_stream_destinations_pass_through(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/index.log")


class TestContractIndexConfig:
    def test_sections_present(self) -> None:
        config = ContractIndexConfig()

        assert config.logging.level == "INFO"
        assert config.database.busy_timeout_ms == 30000
        assert config.ingest.batch_size == 1000
