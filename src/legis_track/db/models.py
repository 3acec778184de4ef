# ABOUTME: SQLAlchemy ORM models for legislative document persistence.
# ABOUTME: Defines documents, sponsors, sponsorships, actions, AI analyses and ingestion run tables.

from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class DocumentRow(Base):
    """A tracked bill."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bill_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(1000), nullable=False)
    official_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    introduction_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    congress_session: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bill_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    full_text_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    sponsorships: Mapped[list["DocumentSponsorRow"]] = relationship(
        "DocumentSponsorRow", back_populates="document", cascade="all, delete-orphan"
    )
    actions: Mapped[list["DocumentActionRow"]] = relationship(
        "DocumentActionRow", back_populates="document", cascade="all, delete-orphan"
    )
    analyses: Mapped[list["AiAnalysisRow"]] = relationship(
        "AiAnalysisRow", back_populates="document", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_documents_introduction_date_desc", introduction_date.desc()),
    )

    def __repr__(self) -> str:
        return f"<Document {self.bill_id}: {self.title[:50]}...>"


class SponsorRow(Base):
    """A legislator who sponsors bills."""

    __tablename__ = "sponsors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bioguide_id: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    party: Mapped[str | None] = mapped_column(String(50), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    district: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Sponsor {self.bioguide_id}: {self.first_name} {self.last_name}>"


class DocumentSponsorRow(Base):
    """Join between a document and one of its sponsors."""

    __tablename__ = "document_sponsors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sponsor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sponsors.id", ondelete="CASCADE"), nullable=False
    )
    is_primary_sponsor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sponsor_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    document: Mapped[DocumentRow] = relationship("DocumentRow", back_populates="sponsorships")
    sponsor: Mapped[SponsorRow] = relationship("SponsorRow", lazy="joined")

    def __repr__(self) -> str:
        return f"<DocumentSponsor doc={self.document_id} sponsor={self.sponsor_id}>"


class DocumentActionRow(Base):
    """A legislative action recorded against a document."""

    __tablename__ = "document_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    action_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    action_text: Mapped[str] = mapped_column(Text, nullable=False)
    chamber: Mapped[str | None] = mapped_column(String(20), nullable=True)
    action_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    document: Mapped[DocumentRow] = relationship("DocumentRow", back_populates="actions")

    def __repr__(self) -> str:
        return f"<DocumentAction {self.id}: {self.action_date} {self.action_text[:40]}>"


class AiAnalysisRow(Base):
    """AI-generated impact analysis for a document."""

    __tablename__ = "ai_analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    general_effect_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    economic_effect_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    industry_tags: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    analysis_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    model_used: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    document: Mapped[DocumentRow] = relationship("DocumentRow", back_populates="analyses")

    __table_args__ = (
        Index("ix_ai_analyses_document_valid", "document_id", "is_valid"),
        Index("ix_ai_analyses_industry_tags", industry_tags, postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<AiAnalysis {self.id}: doc={self.document_id} valid={self.is_valid}>"


class IngestionRunRow(Base):
    """One ingestion attempt, keyed by its from_date."""

    __tablename__ = "ingestion_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        Enum("pending", "success", "failure", name="ingestion_status_enum"),
        nullable=False,
        default="pending",
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    document_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<IngestionRun {self.id}: {self.from_date} {self.status}>"
