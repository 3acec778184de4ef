# ABOUTME: Generates and stores AI impact analyses for documents.
# ABOUTME: Combines general, economic and industry-tag generations into one validated AiAnalysis.

import structlog

from legis_track.models import AiAnalysis, Document
from legis_track.ports import AiAnalysisRepositoryPort, AiModelPort
from legis_track.services.domain_service import DocumentDomainService

log = structlog.get_logger()

MAX_GENERATED_TAGS = 5


class AiAnalysisService:
    """Service that turns model generations into persisted analyses.

    Each generation step may fail on its own; a failed step contributes an
    empty part instead of aborting the whole analysis.
    """

    def __init__(
        self,
        ai_model: AiModelPort,
        analysis_repository: AiAnalysisRepositoryPort,
        domain_service: DocumentDomainService | None = None,
        model_name: str | None = None,
    ) -> None:
        self.ai_model = ai_model
        self.analysis_repository = analysis_repository
        self.domain_service = domain_service or DocumentDomainService()
        self.model_name = model_name

    def is_ready(self) -> bool:
        return self.ai_model.is_service_ready()

    async def generate_general_effect(self, document: Document) -> str | None:
        try:
            return await self.ai_model.generate_general_effect_analysis(
                document.title, document.official_summary
            )
        except Exception as e:
            log.warning("general_effect_failed", bill_id=document.bill_id, error=str(e))
            return None

    async def generate_economic_effect(self, document: Document) -> str | None:
        try:
            return await self.ai_model.generate_economic_effect_analysis(
                document.title, document.official_summary
            )
        except Exception as e:
            log.warning("economic_effect_failed", bill_id=document.bill_id, error=str(e))
            return None

    async def generate_industry_tags(self, document: Document) -> list[str]:
        try:
            tags = await self.ai_model.generate_industry_tags(
                document.title, document.official_summary
            )
        except Exception as e:
            log.warning("industry_tags_failed", bill_id=document.bill_id, error=str(e))
            return []
        cleaned = [tag.strip() for tag in tags or [] if tag and tag.strip()]
        return cleaned[:MAX_GENERATED_TAGS]

    async def generate_and_persist(self, document: Document) -> AiAnalysis | None:
        """Generate a new analysis for ``document`` and save it.

        Returns:
            The saved analysis, or None when the model is not ready, nothing
            useful was generated, validation failed or persistence failed.
        """
        if not self.is_ready():
            log.info("analysis_skipped_model_not_ready", bill_id=document.bill_id)
            return None
        if document.id is None:
            log.warning("analysis_skipped_unsaved_document", bill_id=document.bill_id)
            return None

        log.info("analysis_generating", bill_id=document.bill_id, document_id=document.id)
        analysis = AiAnalysis(
            document_id=document.id,
            general_effect_text=await self.generate_general_effect(document),
            economic_effect_text=await self.generate_economic_effect(document),
            industry_tags=await self.generate_industry_tags(document),
            model_used=self.model_name,
        )

        if not analysis.has_substantial_content():
            log.warning("analysis_empty", bill_id=document.bill_id)
            return None

        violations = self.domain_service.validate_analysis(analysis)
        if violations:
            log.warning("analysis_invalid", bill_id=document.bill_id, violations=violations)
            return None

        try:
            saved = await self.analysis_repository.save(analysis)
        except Exception:
            log.exception("analysis_persist_failed", bill_id=document.bill_id)
            return None

        log.info(
            "analysis_saved",
            bill_id=document.bill_id,
            analysis_id=saved.id,
            tags=len(saved.industry_tags),
        )
        return saved
