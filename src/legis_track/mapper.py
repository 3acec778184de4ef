# ABOUTME: Pure aggregation of documents and pre-fetched collections into read models.
# ABOUTME: Builds summaries, details and party breakdowns without touching any repository.

from collections.abc import Iterable, Sequence

from legis_track.models import (
    AiAnalysis,
    Document,
    DocumentAction,
    DocumentBasic,
    DocumentDetail,
    DocumentSponsor,
    DocumentSummary,
    PartyBreakdown,
)

DEMOCRATIC_PARTIES = frozenset({"democratic", "d"})
REPUBLICAN_PARTIES = frozenset({"republican", "r"})
INDEPENDENT_PARTIES = frozenset({"independent", "i"})


def to_summary(
    document: Document,
    industry_tags: list[str] | None = None,
    party_breakdown: PartyBreakdown | None = None,
    has_valid_analysis: bool = False,
) -> DocumentSummary:
    """Build the list-view row for a document."""
    return DocumentSummary(
        id=document.id or 0,
        bill_id=document.bill_id,
        title=document.title,
        introduction_date=document.introduction_date,
        status=document.status,
        industry_tags=industry_tags or [],
        party_breakdown=party_breakdown or PartyBreakdown(),
        has_valid_analysis=has_valid_analysis,
    )


def to_detail(
    document: Document,
    sponsors: list[DocumentSponsor] | None = None,
    actions: list[DocumentAction] | None = None,
    analysis: AiAnalysis | None = None,
    party_breakdown: PartyBreakdown | None = None,
) -> DocumentDetail:
    """Build the full view. ``analysis`` must already be the latest valid one, if any."""
    return DocumentDetail(
        id=document.id or 0,
        bill_id=document.bill_id,
        title=document.title,
        official_summary=document.official_summary,
        introduction_date=document.introduction_date,
        congress_session=document.congress_session,
        bill_type=document.bill_type,
        full_text_url=document.full_text_url,
        status=document.status,
        sponsors=sponsors or [],
        actions=actions or [],
        analysis=analysis,
        party_breakdown=party_breakdown or PartyBreakdown(),
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def to_basic(document: Document) -> DocumentBasic:
    return DocumentBasic(
        id=document.id or 0,
        bill_id=document.bill_id,
        title=document.title,
        official_summary=document.official_summary,
        introduction_date=document.introduction_date,
        congress_session=document.congress_session or 0,
        bill_type=document.bill_type or "",
        full_text_url=document.full_text_url,
        status=document.status or "",
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def valid_industry_tags(analyses: Iterable[AiAnalysis]) -> list[str]:
    """Distinct industry tags of valid analyses, in first-seen order."""
    tags: dict[str, None] = {}
    for analysis in analyses:
        if analysis.is_valid:
            for tag in analysis.industry_tags:
                tags.setdefault(tag, None)
    return list(tags)


def latest_valid_analysis(analyses: Iterable[AiAnalysis]) -> AiAnalysis | None:
    valid = [a for a in analyses if a.is_valid]
    if not valid:
        return None
    return max(valid, key=lambda a: a.analysis_date)


def sort_actions(actions: Iterable[DocumentAction]) -> list[DocumentAction]:
    """Order actions newest first; undated actions go last."""
    actions = list(actions)
    dated = sorted((a for a in actions if a.action_date), key=lambda a: a.action_date, reverse=True)
    return dated + [a for a in actions if not a.action_date]


def _clamp_percentage(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def calculate_party_breakdown(sponsors: Sequence[DocumentSponsor]) -> PartyBreakdown:
    """Count sponsors by party and derive the democratic/republican percentages.

    Party names match case-insensitively on full name or single-letter code.
    Percentages are clamped to [0, 100] and scaled down proportionally if their
    sum would exceed 100. No sponsors yields an all-zero breakdown.
    """
    total = len(sponsors)
    if total == 0:
        return PartyBreakdown()

    parties = [(s.party or "").strip().lower() for s in sponsors]
    democratic = sum(1 for p in parties if p in DEMOCRATIC_PARTIES)
    republican = sum(1 for p in parties if p in REPUBLICAN_PARTIES)
    independent = sum(1 for p in parties if p in INDEPENDENT_PARTIES)
    other = max(total - democratic - republican - independent, 0)

    democratic_pct = _clamp_percentage(democratic / total * 100)
    republican_pct = _clamp_percentage(republican / total * 100)
    combined = democratic_pct + republican_pct
    if combined > 100.0:
        scale = 100.0 / combined
        democratic_pct *= scale
        republican_pct *= scale

    return PartyBreakdown(
        democratic=democratic,
        republican=republican,
        independent=independent,
        other=other,
        total=total,
        democratic_percentage=democratic_pct,
        republican_percentage=republican_pct,
    )
