"""Supabase question repository using the REST API (no direct PostgreSQL connection)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger
from supabase import create_client, Client

from app.config.settings import settings


# SQL for setting up the database (run once in Supabase SQL Editor)
SETUP_SQL = """
-- ===========================================
-- Question Paper Generator - Database Setup
-- Run this ONCE in Supabase Dashboard → SQL Editor
-- ===========================================

-- 1. Subjects
CREATE TABLE IF NOT EXISTS subjects (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    subject_code VARCHAR(20) NOT NULL UNIQUE,
    subject_name TEXT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- 2. Question bank
CREATE TABLE IF NOT EXISTS questions (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    subject_id UUID NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    content TEXT NOT NULL,
    marks INTEGER NOT NULL CHECK (marks > 0),
    part VARCHAR(1) NOT NULL,
    k_level VARCHAR(2) NOT NULL,
    co_level VARCHAR(3) NOT NULL,
    has_formula BOOLEAN DEFAULT FALSE,
    has_or BOOLEAN DEFAULT FALSE,
    or_content TEXT,
    or_marks INTEGER,
    or_k_level VARCHAR(2),
    or_part VARCHAR(1),
    or_co_level VARCHAR(3),
    or_has_formula BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- 3. Indexes for the selection queries
CREATE INDEX IF NOT EXISTS questions_subject_idx ON questions (subject_id);
CREATE INDEX IF NOT EXISTS questions_subject_co_idx ON questions (subject_id, co_level);
"""


class SupabaseError(RuntimeError):
    """Raised when Supabase operations fail."""


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class CandidateQuestion:
    """A stored question as returned by the repository."""

    id: str
    content: str
    marks: int
    part: str
    k_level: str
    co_level: str
    has_formula: bool = False
    has_or: bool = False
    or_content: Optional[str] = None
    or_marks: Optional[int] = None
    or_k_level: Optional[str] = None
    or_part: Optional[str] = None
    or_co_level: Optional[str] = None
    or_has_formula: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CandidateQuestion":
        return cls(
            id=str(row["id"]),
            content=row.get("content") or "",
            marks=int(row["marks"]),
            part=str(row.get("part") or ""),
            k_level=row.get("k_level") or "",
            co_level=row.get("co_level") or "",
            has_formula=bool(row.get("has_formula")),
            has_or=bool(row.get("has_or")),
            or_content=row.get("or_content"),
            or_marks=_optional_int(row.get("or_marks")),
            or_k_level=row.get("or_k_level"),
            or_part=row.get("or_part"),
            or_co_level=row.get("or_co_level"),
            or_has_formula=bool(row.get("or_has_formula")),
        )


@dataclass(frozen=True)
class Subject:
    """A subject the question bank is organised by."""

    id: str
    subject_code: str
    subject_name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subject":
        return cls(
            id=str(row["id"]),
            subject_code=row.get("subject_code") or "",
            subject_name=row.get("subject_name") or "",
        )


# Singleton client
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get the Supabase client instance (singleton)."""
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    if not settings.supabase_url or not settings.supabase_key:
        raise SupabaseError(
            "Supabase credentials not configured. Set SUPABASE_URL and SUPABASE_KEY."
        )

    _supabase_client = create_client(settings.supabase_url, settings.supabase_key)
    return _supabase_client


def get_setup_sql() -> str:
    """Return the SQL needed to set up the database."""
    return SETUP_SQL


def _raise_for_missing_table(exc: Exception, table: str) -> None:
    if "does not exist" in str(exc).lower():
        logger.error(
            f"Supabase table '{table}' not found. "
            "Run the SQL from /subjects/setup-sql in Supabase SQL Editor."
        )
        raise SupabaseError(
            f"Table '{table}' not found. "
            "Please run the SQL from /subjects/setup-sql in Supabase Dashboard."
        ) from exc


def fetch_candidates(subject_id: str, co_level: Optional[str] = None) -> List[CandidateQuestion]:
    """Fetch candidate questions for a subject, optionally restricted to one CO level.

    An empty list is a valid result; data-access failures raise SupabaseError.
    """
    client = get_supabase_client()
    logger.debug(f"Fetching candidates: subject_id={subject_id}, co_level={co_level}")

    try:
        query = client.table(settings.questions_table).select("*").eq("subject_id", subject_id)
        if co_level:
            query = query.eq("co_level", co_level)
        result = query.execute()
    except Exception as exc:
        _raise_for_missing_table(exc, settings.questions_table)
        raise SupabaseError(f"Failed to fetch questions: {exc}") from exc

    candidates = [CandidateQuestion.from_row(row) for row in result.data or []]
    logger.info(f"Fetched {len(candidates)} candidate questions for subject {subject_id}")
    return candidates


def fetch_all_for_subject(subject_id: str) -> List[CandidateQuestion]:
    """Fetch every question stored for a subject, regardless of CO level."""
    return fetch_candidates(subject_id)


def fetch_subjects() -> List[Subject]:
    """List subjects, most recently created first."""
    client = get_supabase_client()

    try:
        result = (
            client.table(settings.subjects_table)
            .select("id, subject_code, subject_name")
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as exc:
        _raise_for_missing_table(exc, settings.subjects_table)
        raise SupabaseError(f"Failed to fetch subjects: {exc}") from exc

    return [Subject.from_row(row) for row in result.data or []]


def fetch_levels(subject_id: str, co_level: Optional[str] = None) -> Dict[str, List[str]]:
    """Return the distinct K and CO levels stored for a subject.

    Levels keep their first-seen order; blank values are skipped.
    """
    client = get_supabase_client()

    try:
        query = client.table(settings.questions_table).select("k_level, co_level").eq("subject_id", subject_id)
        if co_level:
            query = query.eq("co_level", co_level)
        result = query.execute()
    except Exception as exc:
        _raise_for_missing_table(exc, settings.questions_table)
        raise SupabaseError(f"Failed to fetch levels: {exc}") from exc

    rows = result.data or []
    k_levels = list(dict.fromkeys(r.get("k_level") for r in rows if r.get("k_level")))
    co_levels = list(dict.fromkeys(r.get("co_level") for r in rows if r.get("co_level")))
    return {"k_levels": k_levels, "co_levels": co_levels}
