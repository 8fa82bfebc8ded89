#!/usr/bin/env python3
"""
Generate a question paper offline from a JSON question bank, without Supabase.

The bank file is either a JSON list of question rows shaped like the
`questions` table (content, marks, part, k_level, co_level, has_or, ...), or an
object `{"questions": [...], "template": [{"part", "marks", "count", "needsOr"}]}`
when a different requirement template is wanted. Without a bank file a
synthetic bank and the standard template are used.

Usage:
    python scripts/generate_sample_paper.py [bank.json] [output.docx]

    # Or with uv
    uv run python scripts/generate_sample_paper.py bank.json
"""

import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import datetime
from app.db.supabase import CandidateQuestion
from app.services.paper_assembler import PaperMetadata
from app.services.paper_generator import PaperGenerationError, generate_paper
from app.services.selector import DEFAULT_TEMPLATE, SelectionError, parse_template, select_questions


SAMPLE_METADATA = PaperMetadata(
    subject_code="CS3401",
    subject_name="Algorithms",
    departments=["COMPUTER SCIENCE AND ENGINEERING"],
    years=["II"],
    semesters=["4"],
    tests=["UNIT TEST - 1"],
    dates=["APRIL 2025"],
    regulations=["2021"],
    duration="1.5",
)


def sample_bank() -> list:
    """Enough CO1 questions for the standard template, with some spare."""
    rows = []
    for part, marks, count in (("A", 2, 8), ("B", 12, 6), ("C", 16, 3)):
        for i in range(1, count + 1):
            rows.append({
                "id": f"{part}{marks}-{i}",
                "content": f"Sample Part {part} question {i} worth {marks} marks.",
                "marks": marks,
                "part": part,
                "k_level": f"K{(i % 6) + 1}",
                "co_level": "CO1",
            })
    return rows


def load_bank(path: Path):
    """Return the candidate pool and the requirement template stored in a bank file."""
    with path.open("r", encoding="utf-8") as source:
        data = json.load(source)

    if isinstance(data, dict):
        rows = data.get("questions", [])
        template = parse_template(data["template"]) if data.get("template") else list(DEFAULT_TEMPLATE)
    else:
        rows = data
        template = list(DEFAULT_TEMPLATE)
    return [CandidateQuestion.from_row(row) for row in rows], template


def main():
    print("\n" + "="*60)
    print("QUESTION PAPER GENERATION")
    print("="*60)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    if len(sys.argv) > 1:
        bank_path = Path(sys.argv[1])
        pool, template = load_bank(bank_path)
        print(f"Loaded {len(pool)} questions and {len(template)} template slots from {bank_path}")
    else:
        pool = [CandidateQuestion.from_row(row) for row in sample_bank()]
        template = list(DEFAULT_TEMPLATE)
        print(f"Using synthetic bank of {len(pool)} questions")

    try:
        questions = select_questions(pool, template)
        result = generate_paper(SAMPLE_METADATA, questions)
    except (SelectionError, PaperGenerationError) as e:
        print(f"\n[FAILED]: {e}")
        return 1

    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(result.filename)
    output_path.write_bytes(result.content)

    print(f"\n[SUCCESS]")
    print(f"   File: {output_path}")
    print(f"   Questions: {result.question_count}")
    print(f"   Max. Marks: {result.total_marks}")

    print("\n" + "="*60)
    print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("="*60 + "\n")
    return 0


if __name__ == "__main__":
    exit(main())
