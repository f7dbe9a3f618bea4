"""Unit tests for amount in words (Taka / Poisha, South Asian scale)."""

import pytest

from vqs_billing.words import amount_in_words, num_words, split_amount


@pytest.mark.parametrize("amount, expected", [
    (0, "Zero Taka Only"),
    (100, "One Hundred Taka Only"),
    (100000, "One Lakh Taka Only"),
    (10000000, "One Crore Taka Only"),
    (999, "Nine Hundred Ninety Nine Taka Only"),
    (1015, "One Thousand Fifteen Taka Only"),
    (250000, "Two Lakh Fifty Thousand Taka Only"),
    (0.5, "Zero Taka and Fifty Poisha Only"),
])
def test_boundaries(amount, expected):
    assert amount_in_words(amount) == expected


def test_full_composition():
    assert amount_in_words(1234567.89) == (
        "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Taka and Eighty Nine Poisha Only"
    )


def test_crore_group_above_999_recurses():
    assert num_words(1234 * 10_000_000) == "One Thousand Two Hundred Thirty Four Crore"


def test_poisha_rounding_carries():
    assert split_amount(1.999) == (2, 0)
    assert amount_in_words(1.999) == "Two Taka Only"


def test_string_and_junk_input():
    assert amount_in_words("1,500") == "One Thousand Five Hundred Taka Only"
    assert amount_in_words("abc") == "Zero Taka Only"


def test_negative_amount():
    assert amount_in_words(-50) == "Minus Fifty Taka Only"
