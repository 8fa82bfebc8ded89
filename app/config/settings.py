from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Question Paper Generator"
    app_version: str = "0.1.0"
    app_description: str = "APIs for assembling exam question papers from a question bank"
    cors_allow_origins: List[str] = ["*"]
    log_level: str = "INFO"

    # Supabase configuration (REST API - no direct DB connection needed)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    questions_table: str = "questions"
    subjects_table: str = "subjects"

    # Printed paper layout
    institution_lines: List[str] = [
        "ST.PETER'S COLLEGE OF ENGINEERING AND TECHNOLOGY",
        "(An Autonomous Institution)",
        "AVADI, CHENNAI 600 054",
    ]
    examination_title: str = "B.E./B.TECH - DEGREE EXAMINATIONS"
    default_regulation: str = "2021"
    default_test_code: str = "UT1"
    document_font: str = "Times New Roman"
    # Half-points, as stored in the docx run properties (24 = 12pt)
    document_font_size: int = 24


settings = Settings()
