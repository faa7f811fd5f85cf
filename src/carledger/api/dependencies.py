"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carledger.core.db import get_db
from carledger.core.report_engine import ReportEngine, build_report_engine


async def get_report_engine(db: AsyncSession = Depends(get_db)) -> ReportEngine:
    """Report engine bound to the request's session."""
    return build_report_engine(db)
