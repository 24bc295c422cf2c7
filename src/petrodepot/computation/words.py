"""
Spell out invoice amounts in French (dirhams and centimes).
"""

from decimal import Decimal

from petrodepot.rounding import round2

ONES = [
    "", "un", "deux", "trois", "quatre", "cinq", "six", "sept", "huit", "neuf",
    "dix", "onze", "douze", "treize", "quatorze", "quinze", "seize",
    "dix-sept", "dix-huit", "dix-neuf",
]

TENS = [
    "", "", "vingt", "trente", "quarante", "cinquante", "soixante",
    "soixante", "quatre-vingt", "quatre-vingt",
]

SCALES = ["", "mille", "million", "milliard"]


def _below_hundred(n: int, invariable: bool) -> str:
    if n < 20:
        return ONES[n]

    tens_digit, ones_digit = divmod(n, 10)
    if tens_digit in (7, 9):
        # soixante-dix..., quatre-vingt-dix...
        rest = ONES[10 + ones_digit]
        if tens_digit == 7 and ones_digit == 1:
            return f"{TENS[tens_digit]} et {rest}"
        return f"{TENS[tens_digit]}-{rest}"

    word = TENS[tens_digit]
    if ones_digit == 0:
        if tens_digit == 8 and not invariable:
            return word + "s"
        return word
    if ones_digit == 1 and tens_digit != 8:
        return f"{word} et un"
    return f"{word}-{ONES[ones_digit]}"


def _below_thousand(n: int, invariable: bool) -> str:
    """Words for 1..999; invariable drops the plural s before 'mille'."""
    hundreds, rest = divmod(n, 100)
    parts: list[str] = []

    if hundreds:
        word = "cent" if hundreds == 1 else f"{ONES[hundreds]} cent"
        if hundreds > 1 and rest == 0 and not invariable:
            word += "s"
        parts.append(word)

    if rest:
        parts.append(_below_hundred(rest, invariable))

    return " ".join(parts)


def integer_to_words(n: int) -> str:
    if n == 0:
        return "zéro"

    chunks: list[str] = []
    scale_index = 0
    while n > 0:
        n, chunk = divmod(n, 1000)
        if chunk:
            if scale_index == 1:
                text = "mille" if chunk == 1 else f"{_below_thousand(chunk, True)} mille"
            elif scale_index > 1:
                scale = SCALES[scale_index] + ("s" if chunk > 1 else "")
                text = f"{_below_thousand(chunk, False)} {scale}"
            else:
                text = _below_thousand(chunk, False)
            chunks.append(text)
        scale_index += 1

    return " ".join(reversed(chunks))


def amount_in_words(amount: Decimal) -> str:
    """
    Spell out an amount in dirhams, e.g. 1200.5 -> "Mille deux cents DH et
    cinquante centimes".

    Negative amounts are spelled by absolute value.
    """
    amount = abs(round2(amount))
    if amount == 0:
        return "Zéro DH"

    integer_part = int(amount)
    cents = int((amount - integer_part) * 100)

    text = integer_to_words(integer_part)
    text += " dirham" if integer_part <= 1 else " DH"

    if cents > 0:
        text += f" et {integer_to_words(cents)}"
        text += " centime" if cents <= 1 else " centimes"

    return text[0].upper() + text[1:]
