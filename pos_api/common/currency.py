"""
Rupiah formatting in the Indonesian convention ("." groups thousands, "," marks decimals).
"""
import math


def _parse_amount(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def _group_id(value: float, decimals: int) -> str:
    formatted = f"{abs(value):,.{decimals}f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def format_rupiah(amount) -> str:
    """
    Format an amount with two decimals, e.g. "Rp 1.234.567,00".

    Strings are parsed; anything unparseable renders as "Rp 0,00".
    """
    value = _parse_amount(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}Rp {_group_id(value, 2)}"


def format_rupiah_plain(amount) -> str:
    """
    Format an amount the way invoices print it: no trailing decimals, e.g. "Rp 45.000".

    Up to three fraction digits are kept when the amount is not whole.
    """
    value = _parse_amount(amount)
    sign = "-" if value < 0 else ""
    text = _group_id(value, 3)
    whole, fraction = text.split(",")
    fraction = fraction.rstrip("0")
    if fraction:
        return f"{sign}Rp {whole},{fraction}"
    return f"{sign}Rp {whole}"
