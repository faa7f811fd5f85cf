"""Wires the fact writer, report store and cascade around one session."""

from dataclasses import dataclass
from datetime import date
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from carledger.core.cascade import ReportCascade
from carledger.core.fact_repository import FactRepository, FactWriter
from carledger.core.report_generation import ReportGenerationService
from carledger.core.report_store import ReportStore
from carledger.core.tracker import GenerationTracker
from carledger.utils.datetime import today_local


@dataclass
class ReportEngine:
    facts: FactRepository
    writer: FactWriter
    store: ReportStore
    tracker: GenerationTracker
    service: ReportGenerationService
    cascade: ReportCascade


def build_report_engine(
    session: AsyncSession, clock: Callable[[], date] = today_local
) -> ReportEngine:
    """
    Build the report engine for a session.

    Fact writes and report upserts both notify the same ReportCascade, so a
    sale written through ``engine.writer`` has its daily, monthly and yearly
    rows recomputed before the call returns.
    """
    facts = FactRepository(session)
    writer = FactWriter(session)
    store = ReportStore(session)
    tracker = GenerationTracker(store)
    service = ReportGenerationService(facts, store, tracker, clock=clock)
    cascade = ReportCascade(service)

    writer.subscribe(cascade.dispatch)
    store.subscribe(cascade.dispatch)

    return ReportEngine(
        facts=facts,
        writer=writer,
        store=store,
        tracker=tracker,
        service=service,
        cascade=cascade,
    )
