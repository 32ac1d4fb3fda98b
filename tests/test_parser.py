"""
Test suite for the receipt parser: store name, amount, date and line items.

A fixed reference date is injected wherever the date plausibility window
matters.
"""

from datetime import date
from decimal import Decimal

import pytest

from receipt_extraction.models.extraction import LineItem
from receipt_extraction.services.parser import ReceiptParser, parse_receipt
from receipt_extraction.utils.candidates import create_amount_candidate
from receipt_extraction.utils.scoring import select_best_amount

TODAY = date(2024, 9, 1)

SCENARIO_A = "CVS PHARMACY\n123 MAIN ST\nAdvil  12.99\nTax  1.01\nTOTAL $14.00\n08/07/2024"


@pytest.fixture
def parser():
    return ReceiptParser()


class TestStoreName:
    """Store name: earliest line wins, confidence decays with line index."""

    def test_known_chain_on_first_line(self, parser):
        field = parser.extract_store_name(["CVS PHARMACY", "123 MAIN ST"])
        assert field.value == "Cvs Pharmacy"
        assert field.confidence == pytest.approx(1.0)

    def test_chain_match_is_case_insensitive(self, parser):
        field = parser.extract_store_name(["walmart"])
        assert field.value == "Walmart"
        assert field.confidence == pytest.approx(1.0)

    def test_category_phrase_on_second_line(self, parser):
        field = parser.extract_store_name(["123 MAIN ST", "Sunrise Pharmacy"])
        assert field.value == "Sunrise Pharmacy"
        assert field.confidence == pytest.approx(0.94)

    def test_earlier_line_beats_higher_priority_pattern(self, parser):
        """Line 0 matches only the generic all-caps rule, line 1 a known chain."""
        field = parser.extract_store_name(["SMITH & SONS", "CVS PHARMACY"])
        assert field.value == "Smith & Sons"
        assert field.confidence == pytest.approx(1.0)

    def test_doctor_prefix(self, parser):
        field = parser.extract_store_name(["DR. JANE SMITH DDS", "Cleaning 95.00"])
        assert field.value == "Dr. Jane Smith Dds"

    def test_confidence_at_fifth_line(self, parser):
        lines = ["12.00", "3.50", "1", "2", "GREEN VALLEY MARKET"]
        field = parser.extract_store_name(lines)
        assert field.value == "Green Valley Market"
        assert field.confidence == pytest.approx(0.76)

    def test_only_first_five_lines_are_pattern_scanned(self, parser):
        """A chain on line 5 is only reachable through the fallback."""
        lines = ["12.00", "3.50", "1", "2", "77", "CVS PHARMACY"]
        field = parser.extract_store_name(lines)
        assert field.value == "Cvs Pharmacy"
        assert field.confidence == pytest.approx(0.3)

    def test_fallback_first_plausible_line(self, parser):
        field = parser.extract_store_name(["#0042 receipt copy", "more text here"])
        assert field.value == "0042 Receipt Copy"
        assert field.confidence == pytest.approx(0.3)

    def test_not_found(self, parser):
        assert parser.extract_store_name([]).value is None
        field = parser.extract_store_name(["$$", "12", "4.00"])
        assert not field.found
        assert field.confidence == 0.0


class TestAmount:
    """Amount: every match is scored, highest wins, ties keep the first."""

    def test_keyword_boost(self, parser):
        field = parser.extract_amount(["$20.00", "TOTAL $14.00", "thanks"])
        assert field.value == Decimal("14.00")
        assert field.confidence == pytest.approx(0.9)

    def test_tail_bonus_and_tie_keeps_first(self, parser):
        lines = ["STORE", "x", "y", "z", "10.00", "5.00"]
        field = parser.extract_amount(lines)
        assert field.value == Decimal("10.00")
        assert field.confidence == pytest.approx(0.8)

    def test_balance_keyword(self, parser):
        field = parser.extract_amount(["BALANCE DUE $30.00"])
        assert field.value == Decimal("30.00")
        assert field.confidence == pytest.approx(0.75)

    def test_confidence_capped(self, parser):
        lines = ["A", "B", "TOTAL AMOUNT $50.00"]
        field = parser.extract_amount(lines)
        assert field.value == Decimal("50.00")
        assert field.confidence == pytest.approx(0.95)

    def test_whole_number_after_keyword_has_no_decimal_bonus(self, parser):
        field = parser.extract_amount(["AMOUNT 25"])
        assert field.value == Decimal("25")
        assert field.confidence == pytest.approx(0.7)

    def test_thousands_separator(self, parser):
        field = parser.extract_amount(["TOTAL $1,234.56"])
        assert field.value == Decimal("1234.56")

    def test_ceiling_rejects_and_keeps_searching(self, parser):
        assert not parser.extract_amount(["999999.99 TOTAL"]).found

        field = parser.extract_amount(["999999.99 TOTAL", "AMOUNT DUE 25.50"])
        assert field.value == Decimal("25.50")

    def test_zero_and_ceiling_values_rejected(self, parser):
        assert not parser.extract_amount(["TOTAL $0.00"]).found
        assert not parser.extract_amount(["TOTAL $10000.00"]).found

    def test_plain_item_line_is_not_an_amount(self, parser):
        assert not parser.extract_amount(["Advil  12.99"]).found

    def test_trailing_period_after_amount(self, parser):
        """OCR often reads a stray dot after the total."""
        field = parser.extract_amount(["TOTAL 14.00."])
        assert field.value == Decimal("14.00")
        assert field.confidence == pytest.approx(0.9)

    def test_extra_fraction_digit_blocks_keyword_amount(self, parser):
        assert not parser.extract_amount(["TOTAL 14.005"]).found

    def test_equal_scores_keep_first_candidate_regardless_of_pattern(self):
        first = create_amount_candidate(
            value=Decimal("5.00"), pattern_name="currency_prefixed", numeral="5.00",
            line="$5.00", line_position=0, line_count=1,
        )
        second = create_amount_candidate(
            value=Decimal("7.00"), pattern_name="keyword_then_amount", numeral="7.00",
            line="7.00", line_position=0, line_count=1,
        )

        best, score = select_best_amount([first, second])
        assert best is first
        assert score == pytest.approx(0.6)


class TestDate:
    """Date: first line with a plausible date wins; otherwise today at 0.1."""

    def test_slash_date(self, parser):
        field = parser.extract_date(["08/07/2024"], today=TODAY)
        assert field.value == date(2024, 8, 7)
        assert field.confidence == pytest.approx(0.8)

    def test_confidence_decays_with_line(self, parser):
        lines = ["A", "B", "C", "2024-08-07"]
        field = parser.extract_date(lines, today=TODAY)
        assert field.value == date(2024, 8, 7)
        assert field.confidence == pytest.approx(0.71)

    @pytest.mark.parametrize("line,expected", [
        ("08-07-2024", date(2024, 8, 7)),
        ("2024-08-07", date(2024, 8, 7)),
        ("Date: August 7, 2024 10:32", date(2024, 8, 7)),
        ("7 Aug 2024", date(2024, 8, 7)),
        ("08/07/24", date(2024, 8, 7)),
    ])
    def test_formats(self, parser, line, expected):
        assert parser.extract_date([line], today=TODAY).value == expected

    def test_out_of_window_line_is_skipped(self, parser):
        field = parser.extract_date(["01/15/2020", "2024-08-07"], today=TODAY)
        assert field.value == date(2024, 8, 7)
        assert field.confidence == pytest.approx(0.77)

    def test_future_date_falls_back_to_today(self, parser):
        field = parser.extract_date(["12/25/2024"], today=TODAY)
        assert field.value == TODAY
        assert field.confidence == pytest.approx(0.1)

    def test_rejected_match_does_not_try_next_pattern_on_same_line(self, parser):
        """The slash match is impossible; the ISO date on the same line is ignored."""
        field = parser.extract_date(["09/45/2024 2024-08-07"], today=TODAY)
        assert field.value == TODAY
        assert field.confidence == pytest.approx(0.1)

    def test_only_first_ten_lines_scanned(self, parser):
        lines = [f"line {i}" for i in range(10)] + ["08/07/2024"]
        field = parser.extract_date(lines, today=TODAY)
        assert field.value == TODAY
        assert field.confidence == pytest.approx(0.1)


class TestLineItems:

    def test_exclusion_keywords(self, parser):
        lines = ["Advil 12.99", "Tax 1.01", "TOTAL 14.00", "VISA 14.00", "Thank you 1.00"]
        assert parser.extract_line_items(lines) == (LineItem("Advil", "12.99"),)

    def test_tax_flag_and_currency_sign(self, parser):
        items = parser.extract_line_items(["ADVIL 24CT  12.99 T", "Vitamins $8.49"])
        assert items == (
            LineItem("ADVIL 24CT", "12.99"),
            LineItem("Vitamins", "8.49"),
        )

    def test_loose_price_is_formatted(self, parser):
        items = parser.extract_line_items(["Band-Aid (30ct)* 4.5"])
        assert items == (LineItem("Band-Aid 30ct", "4.50"),)

    def test_bounds(self, parser):
        lines = [
            "Wheelchair 1200.00",   # price over ceiling
            "Freebie 0.00",         # zero price
            "AB 3.00",              # description too short
            "x" * 57 + " 1.00",     # line longer than 60
        ]
        assert parser.extract_line_items(lines) == ()

    def test_truncated_to_fifteen(self, parser):
        lines = [f"Item {i} {i}.00" for i in range(1, 21)]
        items = parser.extract_line_items(lines)
        assert len(items) == 15
        assert items[0] == LineItem("Item 1", "1.00")
        assert items[-1] == LineItem("Item 15", "15.00")


class TestParse:
    """Whole-receipt parsing."""

    def test_scenario_cvs_receipt(self):
        """
        The CVS example receipt.

        The example this receipt comes from lists two line items, but the
        line-item exclusion rule is an anchored prefix match and "Tax  1.01"
        starts with "tax". The rule wins, so only Advil is extracted. Do not
        relax the exclusion to make the count match.
        """
        result = parse_receipt(SCENARIO_A, ocr_confidence=90, today=TODAY)

        assert result.store_name.value == "Cvs Pharmacy"
        assert result.store_name.confidence == pytest.approx(1.0)
        assert result.amount.value == Decimal("14.00")
        assert result.amount.confidence == pytest.approx(0.95)
        assert result.date.value == date(2024, 8, 7)
        assert result.date.confidence == pytest.approx(0.65)
        # "Tax  1.01" starts with an exclusion keyword
        assert result.line_items == (LineItem("Advil", "12.99"),)
        assert result.confidence_scores.overall == pytest.approx(0.9)

    def test_deterministic(self):
        first = parse_receipt(SCENARIO_A, ocr_confidence=90, today=TODAY)
        second = parse_receipt(SCENARIO_A, ocr_confidence=90, today=TODAY)
        assert first == second

    def test_empty_text_never_raises(self):
        result = parse_receipt("", ocr_confidence=0, today=TODAY)
        assert not result.store_name.found
        assert not result.amount.found
        assert result.date.value == TODAY
        assert result.date.confidence == pytest.approx(0.1)
        assert result.line_items == ()

    def test_confidences_in_bounds(self):
        noisy = "\n".join([
            "~~ ##", "TOTAL TOTAL AMOUNT BALANCE $9999.99", "12/12/2099",
            "AMOUNT 1", "0.01", "BALANCE $5,000.00",
        ])
        result = parse_receipt(noisy, ocr_confidence=250, today=TODAY)
        scores = result.confidence_scores.as_dict()
        assert all(0.0 <= value <= 1.0 for value in scores.values())
        assert Decimal("0") < result.amount.value < Decimal("10000")
