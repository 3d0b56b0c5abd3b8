"""Rupee amounts in words, Indian numbering (Thousand, Lakh, Crore)."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from num2words import num2words


def integer_to_words(num: int) -> str:
    """
    Spell a non-negative integer in title case.

    num2words' "one lakh, fifty thousand" and "six hundred and seventy-eight"
    become "One Lakh Fifty Thousand" and "Six Hundred Seventy Eight".
    """
    words = num2words(num, lang="en_IN").replace(",", " ").replace("-", " ")
    return " ".join(word.title() for word in words.split() if word != "and")


def amount_to_words(amount: Union[Decimal, int, str]) -> str:
    """
    Spell a rupee amount for printing on documents.

    Examples:
        >>> amount_to_words(Decimal("1062"))
        'One Thousand Sixty Two Rupees Only'
        >>> amount_to_words(Decimal("150000.50"))
        'One Lakh Fifty Thousand Rupees and Fifty Paise Only'

    Negative amounts, such as a ledger balance in the customer's favour,
    are prefixed with "Minus".
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if value == 0:
        return "Zero Rupees Only"
    sign = "Minus " if value < 0 else ""
    value = abs(value)

    rupees = int(value)
    paise = int((value - rupees) * 100)

    result = integer_to_words(rupees) + " Rupees"
    if paise:
        result += " and " + integer_to_words(paise) + " Paise"
    return sign + result + " Only"
