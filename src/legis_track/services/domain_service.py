# ABOUTME: Pure domain rules over documents, actions, sponsors and analyses.
# ABOUTME: Validation messages, analysis staleness, legislative progress score and staleness checks.

from collections.abc import Callable, Sequence
from datetime import date, timedelta

from legis_track.models import AiAnalysis, Document, DocumentAction, DocumentSponsor

MAX_TITLE_LENGTH = 1000
MIN_CONGRESS_SESSION = 1
MAX_CONGRESS_SESSION = 200
MAX_EFFECT_TEXT_LENGTH = 10_000
MAX_INDUSTRY_TAGS = 10
STALE_AFTER_DAYS = 30

PROGRESS_WEIGHTS: dict[str, float] = {
    "introduced": 0.1,
    "referred": 0.2,
    "markup": 0.3,
    "reported": 0.4,
    "passed": 0.7,
    "signed": 1.0,
    "enacted": 1.0,
}


class DocumentDomainService:
    """Side-effect free business rules. ``today`` is injectable for date-based checks."""

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    def validate_document(self, document: Document) -> list[str]:
        """Return rule violations; an empty list means the document is valid."""
        errors: list[str] = []

        if not document.bill_id.strip():
            errors.append("Bill ID cannot be blank")

        if not document.title.strip():
            errors.append("Title cannot be blank")

        if len(document.title) > MAX_TITLE_LENGTH:
            errors.append(f"Title cannot exceed {MAX_TITLE_LENGTH} characters")

        session = document.congress_session
        if session is not None and not MIN_CONGRESS_SESSION <= session <= MAX_CONGRESS_SESSION:
            errors.append(
                f"Congressional session must be between {MIN_CONGRESS_SESSION} and {MAX_CONGRESS_SESSION}"
            )

        return errors

    def needs_analysis(self, document: Document, analyses: Sequence[AiAnalysis]) -> bool:
        """True without a valid analysis, or when the document changed after the latest one."""
        valid = [a for a in analyses if a.is_valid]
        if not valid:
            return True
        latest = max(valid, key=lambda a: a.analysis_date)
        # Equal timestamps count as up to date.
        return document.updated_at > latest.analysis_date

    def calculate_progress(self, document: Document, actions: Sequence[DocumentAction]) -> float:
        """Highest keyword weight found in any action text, 0.0 when nothing matches."""
        progress = 0.0
        for action in actions:
            text = action.action_text.lower()
            for keyword, weight in PROGRESS_WEIGHTS.items():
                if keyword in text:
                    progress = max(progress, weight)
        return progress

    def find_primary_sponsor(self, sponsors: Sequence[DocumentSponsor]) -> DocumentSponsor | None:
        return next((s for s in sponsors if s.is_primary_sponsor), None)

    def validate_analysis(self, analysis: AiAnalysis) -> list[str]:
        errors: list[str] = []

        general = analysis.general_effect_text
        economic = analysis.economic_effect_text

        if not (general and general.strip()) and not (economic and economic.strip()):
            errors.append("Analysis must have either general effect or economic effect text")

        if general and len(general) > MAX_EFFECT_TEXT_LENGTH:
            errors.append("General effect text cannot exceed 10,000 characters")

        if economic and len(economic) > MAX_EFFECT_TEXT_LENGTH:
            errors.append("Economic effect text cannot exceed 10,000 characters")

        if len(analysis.industry_tags) > MAX_INDUSTRY_TAGS:
            errors.append(f"Cannot have more than {MAX_INDUSTRY_TAGS} industry tags")

        return errors

    def is_stale(self, document: Document, actions: Sequence[DocumentAction]) -> bool:
        """Stale when not updated for over 30 days and no action in the last 30 days."""
        today = self._today()
        days_since_update = (today - document.updated_at.date()).days
        if days_since_update <= STALE_AFTER_DAYS:
            return False

        recent_cutoff = today - timedelta(days=STALE_AFTER_DAYS)
        has_recent_action = any(
            action.action_date is not None and action.action_date >= recent_cutoff
            for action in actions
        )
        return not has_recent_action
