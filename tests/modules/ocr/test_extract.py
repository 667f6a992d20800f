import math

import pytest

from tapscript.core.constants import Comparison
from tapscript.modules.ocr.extract import (
    compare,
    correct_ocr_errors,
    extract_number,
    extract_value,
    is_valid_number,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("29", 29.0),
        (" 2 9 \n", 29.0),
        ("12.5", 12.5),
        ("12,5", 12.5),
        ("1,000", 1000.0),
        ("1,500", 1500.0),
        ("1,50", 1.5),
        ("1,5000", 1.5),
        ("-15", -15.0),
        ("80%", 80.0),
        ("120px", 120.0),
        ("z9", 29.0),
        ("zg", 29.0),
        ("Ze", 28.0),
        ("1O0", 100.0),
        ("Sl", 51.0),
        ("体力: 45/120", 45.0),
    ],
)
def test_extract_number(text, expected):
    assert extract_number(text) == expected


@pytest.mark.parametrize("text", ["", None, "   ", "abc", "确认"])
def test_extract_number_returns_none_without_digits(text):
    assert extract_number(text) is None


def test_extract_number_rejects_out_of_range():
    assert extract_number("9999999999") is None
    assert extract_number("999999999") == 999999999.0


def test_correct_ocr_errors_applies_digraphs_before_single_chars():
    assert correct_ocr_errors("ze") == "28"
    assert correct_ocr_errors("th") == "29"
    assert correct_ocr_errors("OIlSZB") == "011528"


def test_is_valid_number():
    assert is_valid_number(0.0)
    assert not is_valid_number(None)
    assert not is_valid_number(math.inf)
    assert not is_valid_number(math.nan)
    assert not is_valid_number(1e10)


def test_compare_examples():
    assert compare(20.0, 20.0, Comparison.EQUALS)
    assert compare(15.0, 20.0, Comparison.LESS_THAN)
    assert compare("Login Confirmed", "confirm", Comparison.CONTAINS)


def test_compare_equals_is_exact_by_default():
    assert not compare(0.1 + 0.2, 0.3, Comparison.EQUALS)
    assert compare(0.1 + 0.2, 0.3, Comparison.EQUALS, tolerance=1e-9)


def test_compare_rejects_mismatched_kinds():
    assert not compare(20.0, 20.0, Comparison.CONTAINS)
    assert not compare("20", 20.0, Comparison.EQUALS)
    assert not compare(20.0, 30.0, Comparison.EQUALS)
    assert not compare(20.0, 20.0, Comparison.LESS_THAN)


def test_extract_value_by_comparison():
    assert extract_value("29", Comparison.LESS_THAN) == 29.0
    assert extract_value("  Login  ", Comparison.CONTAINS) == "Login"
    assert extract_value("   ", Comparison.CONTAINS) is None
