"""Database module for Supabase REST API operations."""

from app.db.supabase import (
    get_supabase_client,
    get_setup_sql,
    fetch_candidates,
    fetch_all_for_subject,
    fetch_subjects,
    fetch_levels,
    CandidateQuestion,
    Subject,
    SupabaseError,
)

__all__ = [
    "get_supabase_client",
    "get_setup_sql",
    "fetch_candidates",
    "fetch_all_for_subject",
    "fetch_subjects",
    "fetch_levels",
    "CandidateQuestion",
    "Subject",
    "SupabaseError",
]
