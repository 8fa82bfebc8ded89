"""Subject lookup endpoints backing the paper form."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.db.supabase import SupabaseError, fetch_levels, fetch_subjects, get_setup_sql
from app.services.paper_generator import resolve_test_co_level
from app.services.selector import PreconditionError


router = APIRouter(prefix="/subjects", tags=["subjects"])

DEFAULT_K_LEVELS = ["K1", "K2", "K3", "K4", "K5", "K6"]
DEFAULT_CO_LEVELS = ["CO1", "CO2", "CO3", "CO4", "CO5"]


class SubjectResponse(BaseModel):
    id: str
    subject_code: str
    subject_name: str


class LevelsResponse(BaseModel):
    """K and CO levels available for a subject."""

    subject_id: str
    co_filter: Optional[str] = Field(default=None, description="CO level the lookup was restricted to")
    k_levels: List[str]
    co_levels: List[str]


@router.get("", response_model=List[SubjectResponse])
async def list_subjects() -> List[SubjectResponse]:
    """List subjects, newest first."""
    try:
        subjects = fetch_subjects()
    except SupabaseError as exc:
        raise HTTPException(
            status_code=503,
            detail=f"Database error: {exc}. Check Supabase credentials.",
        ) from exc
    return [
        SubjectResponse(id=s.id, subject_code=s.subject_code, subject_name=s.subject_name)
        for s in subjects
    ]


@router.get("/setup-sql")
async def get_database_setup_sql():
    """Get the SQL needed to set up the subjects and questions tables.

    Copy this SQL and run it in Supabase Dashboard → SQL Editor.
    """
    return {
        "instructions": "Run this SQL in Supabase Dashboard → SQL Editor",
        "sql": get_setup_sql(),
    }


@router.get("/{subject_id}/levels", response_model=LevelsResponse)
async def get_levels(
    subject_id: str,
    test: Optional[str] = Query(default=None, description="Restrict to the CO level this test examines"),
) -> LevelsResponse:
    """K/CO levels stored for a subject; the full default lists when nothing is stored."""
    co_filter = None
    if test:
        try:
            co_filter = resolve_test_co_level(test)
        except PreconditionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        levels = fetch_levels(subject_id, co_filter)
    except SupabaseError as exc:
        raise HTTPException(
            status_code=503,
            detail=f"Database error: {exc}. Check Supabase credentials.",
        ) from exc

    return LevelsResponse(
        subject_id=subject_id,
        co_filter=co_filter,
        k_levels=levels["k_levels"] or DEFAULT_K_LEVELS,
        co_levels=levels["co_levels"] or DEFAULT_CO_LEVELS,
    )
