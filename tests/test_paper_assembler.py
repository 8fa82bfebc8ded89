"""Tests for the question paper document tree."""

import pytest

from app.services.document_tree import Alignment, Paragraph, Table
from app.services.mapper import PaperQuestion
from app.services.paper_assembler import (
    CO_COLUMNS,
    K_LEVEL_LEGEND,
    PaperMetadata,
    assemble_paper,
    build_question_table,
    calculate_total_marks,
    co_distribution,
    co_percentages,
    paper_filename,
    paper_test_code,
    partition_by_part,
    semester_word,
)


def _q(qid, part="A", marks=2, co_level="CO1", k_level="K1", **extra):
    return PaperQuestion(
        id=qid,
        content=f"Question {qid}",
        marks=marks,
        part=part,
        k_level=k_level,
        co_level=co_level,
        **extra,
    )


def _metadata(**overrides):
    values = dict(
        subject_code="CS3401",
        subject_name="Algorithms",
        departments=["CSE"],
        semesters=["4"],
        tests=["UNIT TEST - 2"],
        dates=["APRIL 2025"],
        regulations=["2021"],
        duration="1.5",
    )
    values.update(overrides)
    return PaperMetadata(**values)


def _paragraph_texts(tree):
    return [block.text for block in tree.blocks if isinstance(block, Paragraph)]


def _part_table(tree, part):
    for index, block in enumerate(tree.blocks):
        if isinstance(block, Paragraph) and block.text.startswith(f"PART-{part}"):
            return tree.blocks[index + 1]
    raise AssertionError(f"no PART-{part} header")


def _co_table(tree):
    return [block for block in tree.blocks if isinstance(block, Table)][-1]


class TestTotals:
    """Tests for total marks and CO distribution."""

    def test_or_marks_excluded_from_total(self):
        questions = [
            _q("1", marks=2),
            _q("2", part="B", marks=12, has_or=True, or_content="Alt", or_marks=10),
        ]
        assert calculate_total_marks(questions) == 14

    def test_co_distribution_is_additive(self):
        questions = [
            _q("1", marks=10, co_level="CO1"),
            _q("2", part="B", marks=16, co_level="CO2", has_or=True, or_content="Alt", or_co_level="CO1", or_marks=6),
        ]
        distribution = co_distribution(questions)

        assert distribution["CO1"] == 16
        assert distribution["CO2"] == 16

    def test_or_marks_fall_back_to_main(self):
        questions = [_q("1", marks=12, co_level="CO1", has_or=True, or_content="Alt", or_co_level="CO3")]
        assert co_distribution(questions) == {"CO1": 12, "CO3": 12}

    def test_or_without_co_not_counted(self):
        questions = [_q("1", marks=12, co_level="CO1", has_or=True, or_content="Alt")]
        assert co_distribution(questions) == {"CO1": 12}

    def test_percentages_fixed_for_present_cos(self):
        assert co_percentages({"CO1": 16, "CO2": 4, "CO4": 0}) == {"CO1": 100, "CO2": 100}


class TestHelpers:
    """Tests for header helpers."""

    @pytest.mark.parametrize("value,expected", [("1", "FIRST"), ("4", "FOURTH"), ("8", "EIGHTH"), ("9", "9"), ("", "")])
    def test_semester_word(self, value, expected):
        assert semester_word(value) == expected

    @pytest.mark.parametrize(
        "test,expected",
        [("UNIT TEST - 2", "UT2"), ("Unit Test 3", "UT3"), ("MODEL EXAM", "MODEL EXAM"), ("", "UT1"), (None, "UT1")],
    )
    def test_paper_test_code(self, test, expected):
        assert paper_test_code(test) == expected

    def test_paper_filename(self):
        assert paper_filename("CS3401") == "CS3401_question_paper.docx"
        assert paper_filename("CS 34/01") == "CS3401_question_paper.docx"
        assert paper_filename("") == "question_paper.docx"

    def test_partition_is_case_insensitive(self):
        partitioned = partition_by_part([_q("1", part="a"), _q("2", part="B"), _q("3", part="c"), _q("4", part="D")])

        assert [q.id for q in partitioned["A"]] == ["1"]
        assert [q.id for q in partitioned["B"]] == ["2"]
        assert [q.id for q in partitioned["C"]] == ["3"]


class TestQuestionTable:
    """Tests for question rows."""

    def test_plain_row(self):
        table = build_question_table([_q("1", marks=2, co_level="CO1", k_level="K2")], 0)

        assert len(table.rows) == 1
        assert table.rows[0].texts == ("1.", "Question 1", "2", "CO1", "K2")

    def test_or_rows(self):
        question = _q(
            "1",
            part="B",
            marks=12,
            co_level="CO1",
            k_level="K2",
            has_or=True,
            or_content="Alternative",
            or_marks=12,
            or_co_level="CO2",
            or_k_level="K3",
        )
        table = build_question_table([question], 5)

        assert [row.texts for row in table.rows] == [
            ("6.a.", "Question 1", "12", "CO1", "K2"),
            ("", "OR", "", "", ""),
            ("6.b.", "Alternative", "12", "CO2", "K3"),
        ]
        or_cell = table.rows[1].cells[1]
        assert or_cell.paragraphs[0].alignment == Alignment.center
        assert or_cell.paragraphs[0].runs[0].bold is True

    def test_or_row_falls_back_to_main_values(self):
        question = _q("1", part="C", marks=16, co_level="CO4", k_level="K5", has_or=True, or_content="Alternative")
        table = build_question_table([question], 0)

        assert table.rows[2].texts == ("1.b.", "Alternative", "16", "CO4", "K5")


class TestAssemblePaper:
    """Tests for assemble_paper."""

    def test_numbering_continues_across_parts(self):
        tree = assemble_paper(_metadata(), [_q("1"), _q("2"), _q("3", part="B", marks=12)])

        assert _part_table(tree, "A").rows[1].texts[0] == "2."
        assert _part_table(tree, "B").rows[0].texts[0] == "3."
        assert _part_table(tree, "C").rows == ()

    def test_numbering_counts_questions_not_rows(self):
        questions = [
            _q("1", part="B", marks=12, has_or=True, or_content="Alt"),
            _q("2", part="B", marks=12, has_or=True, or_content="Alt"),
            _q("3", part="C", marks=16),
        ]
        tree = assemble_paper(_metadata(), questions)

        assert _part_table(tree, "B").rows[3].texts[0] == "2.a."
        assert _part_table(tree, "C").rows[0].texts[0] == "3."

    def test_part_headers(self):
        tree = assemble_paper(_metadata(), [_q("1")])
        texts = _paragraph_texts(tree)

        assert "PART-A (5 × 2 = 10 Marks)" in texts
        assert "PART-B (2 × 12 = 24 Marks)" in texts
        assert "PART-C (1 × 16 = 16 Marks)" in texts

    def test_header_block(self):
        tree = assemble_paper(_metadata(), [_q("1", marks=2), _q("2", part="C", marks=16)])
        texts = _paragraph_texts(tree)

        assert "B.E./B.TECH - DEGREE EXAMINATIONS APRIL 2025" in texts
        assert "FOURTH SEMESTER" in texts
        assert "UNIT TEST - 2" in texts
        assert "DEPARTMENT OF CSE" in texts
        assert "CS3401 - Algorithms" in texts
        assert "(Regulations 2021)" in texts
        assert "Answer ALL Questions" in texts

        code_table = tree.blocks[0]
        assert code_table.rows[0].texts[:3] == ("Question Paper Code", "UT2CS3401", "Register No")

        duration_table = next(
            block for block in tree.blocks
            if isinstance(block, Table) and block.rows and block.rows[0].texts[0].startswith("Duration")
        )
        assert duration_table.rows[0].texts == ("Duration: 1.5 hours", "Max. Marks: 18")

    def test_default_regulation(self):
        tree = assemble_paper(_metadata(regulations=[]), [_q("1")])
        assert "(Regulations 2021)" in _paragraph_texts(tree)

    def test_blank_regulation_uses_default(self):
        tree = assemble_paper(_metadata(regulations=[""]), [_q("1")])
        texts = _paragraph_texts(tree)

        assert "(Regulations 2021)" in texts
        assert "(Regulations )" not in texts

    def test_missing_metadata_does_not_raise(self):
        tree = assemble_paper(PaperMetadata(), [_q("1")])
        texts = _paragraph_texts(tree)

        assert "SEMESTER" in " ".join(texts)
        assert tree.blocks[0].rows[0].texts[1] == "UT1"

    def test_co_distribution_table(self):
        questions = [
            _q("1", marks=10, co_level="CO1"),
            _q("2", part="C", marks=16, co_level="CO2", has_or=True, or_content="Alt", or_co_level="CO1", or_marks=6),
        ]
        table = _co_table(assemble_paper(_metadata(), questions))

        assert table.rows[0].texts == ("Evaluation",) + CO_COLUMNS
        assert table.rows[1].texts == ("Marks", "16", "16", "-", "-", "-", "-")
        assert table.rows[2].texts == ("%", "100", "100", "-", "-", "-", "-")
        assert all(cell.bordered for row in table.rows for cell in row.cells)

    def test_legend_is_last(self):
        tree = assemble_paper(_metadata(), [_q("1")])
        assert tree.blocks[-1].text == K_LEVEL_LEGEND
        assert "K6 – Create" in K_LEVEL_LEGEND
