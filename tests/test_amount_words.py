from decimal import Decimal

import pytest

from billbook.core.amount_words import amount_to_words


@pytest.mark.parametrize("amount,words", [
    (Decimal("0"), "Zero Rupees Only"),
    (Decimal("7"), "Seven Rupees Only"),
    (Decimal("1062"), "One Thousand Sixty Two Rupees Only"),
    (Decimal("150000"), "One Lakh Fifty Thousand Rupees Only"),
    (Decimal("12345678"), "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight Rupees Only"),
    (Decimal("100.50"), "One Hundred Rupees and Fifty Paise Only"),
    (Decimal("0.25"), "Zero Rupees and Twenty Five Paise Only"),
    (Decimal("-500"), "Minus Five Hundred Rupees Only"),
    (Decimal("-0.004"), "Zero Rupees Only"),
])
def test_amount_to_words(amount, words):
    assert amount_to_words(amount) == words
