"""Integer to Spanish words, as written on legal documents (``500`` -> ``quinientos``)."""

from __future__ import annotations

ONES = ["", "uno", "dos", "tres", "cuatro", "cinco", "seis", "siete", "ocho", "nueve"]
TEENS = [
    "diez",
    "once",
    "doce",
    "trece",
    "catorce",
    "quince",
    "dieciséis",
    "diecisiete",
    "dieciocho",
    "diecinueve",
]
TENS = ["", "", "veinte", "treinta", "cuarenta", "cincuenta", "sesenta", "setenta", "ochenta", "noventa"]
HUNDREDS = [
    "",
    "ciento",
    "doscientos",
    "trescientos",
    "cuatrocientos",
    "quinientos",
    "seiscientos",
    "setecientos",
    "ochocientos",
    "novecientos",
]

WORDS_LIMIT = 1_000_000


def number_to_words(num: int) -> str:
    """Spell ``num`` in lowercase Spanish.

    Tens and units always join with "y" (``21`` -> ``veinte y uno``). Values of
    one million and above are returned as plain digits.
    """
    if num < 0:
        return f"menos {number_to_words(-num)}"
    if num == 0:
        return "cero"
    if num < 10:
        return ONES[num]
    if num < 20:
        return TEENS[num - 10]
    if num < 100:
        tens, ones = divmod(num, 10)
        return TENS[tens] + (f" y {ONES[ones]}" if ones else "")
    if num == 100:
        return "cien"
    if num < 1000:
        hundreds, remainder = divmod(num, 100)
        return HUNDREDS[hundreds] + (f" {number_to_words(remainder)}" if remainder else "")
    if num == 1000:
        return "mil"
    if num < 2000:
        return f"mil {number_to_words(num - 1000)}"
    if num < WORDS_LIMIT:
        thousands, remainder = divmod(num, 1000)
        prefix = f"{number_to_words(thousands)} mil"
        return f"{prefix} {number_to_words(remainder)}" if remainder else prefix
    return str(num)


def amount_in_words(num: int, currency: str = "euros") -> str:
    """Upper-cased legal form: ``QUINIENTOS EUROS``."""
    return f"{number_to_words(num)} {currency}".upper()
