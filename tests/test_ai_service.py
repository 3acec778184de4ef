# ABOUTME: Tests for AiAnalysisService generation, validation and persistence.
# ABOUTME: Uses a scripted model fake and the in-memory analysis repository.

from unittest.mock import AsyncMock

from conftest import FakeAiModel

from legis_track.ai.prompts import parse_industry_tags
from legis_track.ai.service import MAX_GENERATED_TAGS, AiAnalysisService


class TestParseIndustryTags:
    """Tests for comma-separated tag parsing."""

    def test_split_trim_cap(self) -> None:
        raw = " Energy, Finance ,, Health, Defense, Agriculture, Transport"
        assert parse_industry_tags(raw, 5) == ["Energy", "Finance", "Health", "Defense", "Agriculture"]

    def test_empty(self) -> None:
        assert parse_industry_tags(None, 5) == []
        assert parse_industry_tags("", 5) == []


class TestGenerateAndPersist:
    """Tests for generate_and_persist."""

    async def test_saves_analysis(self, analysis_repository, sample_document) -> None:
        service = AiAnalysisService(FakeAiModel(), analysis_repository, model_name="test-model")

        analysis = await service.generate_and_persist(sample_document)

        assert analysis is not None
        assert analysis.id == 1
        assert analysis.document_id == sample_document.id
        assert analysis.general_effect_text == "General effect."
        assert analysis.economic_effect_text == "Economic effect."
        assert analysis.industry_tags == ["Energy", "Finance"]
        assert analysis.model_used == "test-model"
        assert analysis.is_valid

    async def test_model_not_ready(self, analysis_repository, sample_document) -> None:
        service = AiAnalysisService(FakeAiModel(ready=False), analysis_repository)

        assert await service.generate_and_persist(sample_document) is None
        assert analysis_repository.analyses == {}

    async def test_partial_failure_keeps_other_parts(self, analysis_repository, sample_document) -> None:
        model = FakeAiModel(general=RuntimeError("timeout"), tags=RuntimeError("bad answer"))
        service = AiAnalysisService(model, analysis_repository)

        analysis = await service.generate_and_persist(sample_document)

        assert analysis.general_effect_text is None
        assert analysis.economic_effect_text == "Economic effect."
        assert analysis.industry_tags == []

    async def test_no_content_is_not_persisted(self, analysis_repository, sample_document) -> None:
        model = FakeAiModel(general=None, economic="   ")
        service = AiAnalysisService(model, analysis_repository)

        assert await service.generate_and_persist(sample_document) is None
        assert analysis_repository.analyses == {}

    async def test_tags_capped(self, analysis_repository, sample_document) -> None:
        model = FakeAiModel(tags=[f" tag{i} " for i in range(8)] + [""])
        service = AiAnalysisService(model, analysis_repository)

        analysis = await service.generate_and_persist(sample_document)

        assert len(analysis.industry_tags) == MAX_GENERATED_TAGS
        assert analysis.industry_tags[0] == "tag0"

    async def test_invalid_analysis_is_not_persisted(self, analysis_repository, sample_document) -> None:
        model = FakeAiModel(general="g" * 10_001, economic=None)
        service = AiAnalysisService(model, analysis_repository)

        assert await service.generate_and_persist(sample_document) is None
        assert analysis_repository.analyses == {}

    async def test_persistence_failure_returns_none(self, analysis_repository, sample_document) -> None:
        analysis_repository.save = AsyncMock(side_effect=RuntimeError("db down"))
        service = AiAnalysisService(FakeAiModel(), analysis_repository)

        assert await service.generate_and_persist(sample_document) is None

    async def test_unsaved_document(self, analysis_repository, sample_document) -> None:
        service = AiAnalysisService(FakeAiModel(), analysis_repository)
        document = sample_document.model_copy(update={"id": None})

        assert await service.generate_and_persist(document) is None
