# ABOUTME: Tests for DocumentDomainService business rules.
# ABOUTME: Validation messages, analysis freshness, progress weighting and staleness.

from datetime import UTC, date, datetime

import pytest
from conftest import make_analysis, make_sponsor

from legis_track.models import AiAnalysis, DocumentAction
from legis_track.services.domain_service import DocumentDomainService


@pytest.fixture
def service() -> DocumentDomainService:
    return DocumentDomainService(today=lambda: date(2025, 6, 30))


class TestValidateDocument:
    """Tests for validate_document."""

    def test_valid_document(self, service, sample_document) -> None:
        assert service.validate_document(sample_document) == []

    def test_blank_fields(self, service, sample_document) -> None:
        document = sample_document.model_copy(update={"bill_id": " ", "title": ""})
        errors = service.validate_document(document)
        assert "Bill ID cannot be blank" in errors
        assert "Title cannot be blank" in errors

    def test_long_title(self, service, sample_document) -> None:
        document = sample_document.model_copy(update={"title": "x" * 1001})
        assert service.validate_document(document) == ["Title cannot exceed 1000 characters"]

    @pytest.mark.parametrize("session", [0, 201])
    def test_session_out_of_range(self, service, sample_document, session: int) -> None:
        document = sample_document.model_copy(update={"congress_session": session})
        assert service.validate_document(document) == [
            "Congressional session must be between 1 and 200"
        ]

    def test_missing_session_is_allowed(self, service, sample_document) -> None:
        document = sample_document.model_copy(update={"congress_session": None})
        assert service.validate_document(document) == []


class TestNeedsAnalysis:
    """Tests for needs_analysis."""

    def test_no_valid_analysis(self, service, sample_document) -> None:
        assert service.needs_analysis(sample_document, [make_analysis(is_valid=False)])

    def test_updated_after_latest(self, service, sample_document) -> None:
        analysis = make_analysis(analysis_date=datetime(2025, 3, 1, tzinfo=UTC))
        assert service.needs_analysis(sample_document, [analysis])

    def test_equal_timestamp_is_up_to_date(self, service, sample_document) -> None:
        analysis = make_analysis(analysis_date=sample_document.updated_at)
        assert not service.needs_analysis(sample_document, [analysis])


class TestCalculateProgress:
    """Tests for calculate_progress."""

    def test_no_actions(self, service, sample_document) -> None:
        assert service.calculate_progress(sample_document, []) == 0.0

    def test_highest_keyword_wins(self, service, sample_document) -> None:
        actions = [
            DocumentAction(action_text="Introduced in House"),
            DocumentAction(action_text="Passed House"),
            DocumentAction(action_text="Referred to committee"),
        ]
        assert service.calculate_progress(sample_document, actions) == 0.7

    def test_all_matches_in_one_text_count(self, service, sample_document) -> None:
        actions = [DocumentAction(action_text="Introduced and later signed by President")]
        assert service.calculate_progress(sample_document, actions) == 1.0

    def test_enacted_outranks_lower_matches(self, service, sample_document) -> None:
        actions = [
            DocumentAction(action_text="Introduced in Senate"),
            DocumentAction(action_text="Referred to the Committee on Finance"),
            DocumentAction(action_text="Became Public Law; enacted"),
        ]
        assert service.calculate_progress(sample_document, actions) == 1.0

    def test_enacted_with_lower_keywords_in_same_text(self, service, sample_document) -> None:
        actions = [DocumentAction(action_text="Introduced, passed and enacted")]
        assert service.calculate_progress(sample_document, actions) == 1.0

    def test_case_insensitive(self, service, sample_document) -> None:
        actions = [DocumentAction(action_text="REPORTED by committee")]
        assert service.calculate_progress(sample_document, actions) == 0.4


class TestFindPrimarySponsor:
    """Tests for find_primary_sponsor."""

    def test_first_primary(self, service) -> None:
        first = make_sponsor("D", primary=True, bioguide_id="A1")
        second = make_sponsor("R", primary=True, bioguide_id="B2")
        assert service.find_primary_sponsor([make_sponsor("I"), first, second]) is first

    def test_none(self, service) -> None:
        assert service.find_primary_sponsor([make_sponsor("D")]) is None


class TestValidateAnalysis:
    """Tests for validate_analysis."""

    def test_valid(self, service) -> None:
        assert service.validate_analysis(make_analysis(tags=["Energy"])) == []

    def test_empty_content(self, service) -> None:
        analysis = AiAnalysis(document_id=1, general_effect_text=" ", economic_effect_text=None)
        assert service.validate_analysis(analysis) == [
            "Analysis must have either general effect or economic effect text"
        ]

    def test_text_and_tag_limits(self, service) -> None:
        analysis = AiAnalysis(
            document_id=1,
            general_effect_text="g" * 10_001,
            economic_effect_text="e" * 10_001,
            industry_tags=[f"tag{i}" for i in range(11)],
        )
        assert service.validate_analysis(analysis) == [
            "General effect text cannot exceed 10,000 characters",
            "Economic effect text cannot exceed 10,000 characters",
            "Cannot have more than 10 industry tags",
        ]


class TestIsStale:
    """Tests for is_stale with today fixed at 2025-06-30."""

    def test_recently_updated(self, service, sample_document) -> None:
        document = sample_document.model_copy(
            update={"updated_at": datetime(2025, 6, 15, tzinfo=UTC)}
        )
        assert not service.is_stale(document, [])

    def test_old_without_actions(self, service, sample_document) -> None:
        assert service.is_stale(sample_document, [])

    def test_old_with_recent_action(self, service, sample_document) -> None:
        actions = [DocumentAction(action_text="Reported", action_date=date(2025, 6, 20))]
        assert not service.is_stale(sample_document, actions)

    def test_old_with_old_action(self, service, sample_document) -> None:
        actions = [DocumentAction(action_text="Reported", action_date=date(2025, 4, 1))]
        assert service.is_stale(sample_document, actions)
