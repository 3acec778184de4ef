# ABOUTME: CLI entry point for the LegisTrack bill tracker.
# ABOUTME: Provides subcommands: ingest, analyze, stats, serve.

import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta

import structlog

from legis_track.config import get_settings


def configure_logging() -> None:
    """Configure structlog for console or JSON output."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )
    else:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
                structlog.processors.add_log_level,
                structlog.dev.ConsoleRenderer(colors=True),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )


def _default_from_date() -> date:
    return date.today() - timedelta(days=get_settings().ingestion_lookback_days)


def cmd_ingest(args: argparse.Namespace) -> int:
    """Ingest bills updated since --from-date (default: today minus the lookback window)."""
    from legis_track.services.ingestion_service import run_ingestion

    log = structlog.get_logger()
    from_date = date.fromisoformat(args.from_date) if args.from_date else _default_from_date()
    log.info("cmd_ingest_start", from_date=from_date.isoformat())

    try:
        count = asyncio.run(run_ingestion(from_date))
    except Exception:
        log.exception("cmd_ingest_failed")
        return 1

    log.info("cmd_ingest_complete", documents=count)
    print(f"Ingested {count} new documents since {from_date.isoformat()}")
    return 0


async def _analyze(document_id: int) -> bool:
    from legis_track.ai.ollama import OllamaClient
    from legis_track.ai.service import AiAnalysisService
    from legis_track.db.repository import SqlAiAnalysisRepository, SqlDocumentRepository
    from legis_track.db.session import close_db, get_session

    settings = get_settings()
    ai_model = OllamaClient(settings)
    try:
        if not await ai_model.initialize():
            print("\nAI model service is not ready.\n")
            return False
        async with get_session() as session:
            document = await SqlDocumentRepository(session).find_by_id(document_id)
            if document is None:
                print(f"\nDocument {document_id} not found.\n")
                return False
            service = AiAnalysisService(
                ai_model=ai_model,
                analysis_repository=SqlAiAnalysisRepository(session),
                model_name=settings.ollama_model,
            )
            analysis = await service.generate_and_persist(document)
    finally:
        await ai_model.aclose()
        await close_db()

    if analysis is None:
        print(f"\nNo analysis produced for {document.bill_id}.\n")
        return False
    print(f"\nAnalysis {analysis.id} saved for {document.bill_id}")
    print(f"Industry tags: {', '.join(analysis.industry_tags) or '-'}\n")
    return True


def cmd_analyze(args: argparse.Namespace) -> int:
    """Generate and store an AI analysis for one document."""
    log = structlog.get_logger()
    log.info("cmd_analyze_start", document_id=args.document_id)

    try:
        ok = asyncio.run(_analyze(args.document_id))
    except Exception:
        log.exception("cmd_analyze_failed", document_id=args.document_id)
        return 1
    return 0 if ok else 1


async def _stats() -> None:
    from legis_track.db.repository import SqlDocumentRepository, SqlIngestionRunRepository
    from legis_track.db.session import close_db, get_session, get_session_factory
    from legis_track.services.document_service import DocumentService

    try:
        async with get_session() as session:
            summary = await DocumentService(SqlDocumentRepository(session)).get_analytics_summary()
        latest = await SqlIngestionRunRepository(get_session_factory()).find_latest_run()
    finally:
        await close_db()

    print("\n=== LegisTrack Status ===\n")
    print(f"Documents: {summary.total_documents}")
    print(f"Needing analysis: {summary.documents_needing_analysis}")
    print(f"Avg Democratic sponsorship: {summary.avg_democratic_sponsorship:.1f}%")
    print(f"Avg Republican sponsorship: {summary.avg_republican_sponsorship:.1f}%")
    if summary.top_industry_tags:
        print("\nTop industry tags:")
        for item in summary.top_industry_tags:
            print(f"  - {item.tag} ({item.count})")
    if latest:
        print(
            f"\nLast ingestion: {latest.from_date} {latest.status.value} "
            f"({latest.document_count} documents)"
        )
    print()


def cmd_stats(_args: argparse.Namespace) -> int:
    """Show document and ingestion statistics."""
    log = structlog.get_logger()
    try:
        asyncio.run(_stats())
    except Exception:
        log.exception("cmd_stats_failed")
        return 1
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("legis_track.web.app:app", host=args.host, port=args.port)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="legis_track",
        description="Track U.S. bills with AI-assisted impact analysis",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ingest command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Ingest recent bills from Congress.gov",
    )
    ingest_parser.add_argument(
        "--from-date",
        type=str,
        help="Only bills updated since this date (YYYY-MM-DD). Defaults to the lookback window.",
    )

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Generate an AI analysis for a document",
    )
    analyze_parser.add_argument("document_id", type=int, help="Document id")

    # stats command
    subparsers.add_parser(
        "stats",
        help="Show document analytics and the last ingestion run",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API",
    )
    serve_parser.add_argument("--host", type=str, default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main() -> int:
    """Main entry point."""
    configure_logging()

    parser = create_parser()
    args = parser.parse_args()

    commands = {
        "ingest": cmd_ingest,
        "analyze": cmd_analyze,
        "stats": cmd_stats,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
