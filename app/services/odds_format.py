"""
Fractional to decimal odds conversion.

Upstream quotes prices as fractional text ("5/2"); the mirror stores both the
original text and the decimal form (1 + numerator/denominator).
"""
import math
from typing import Tuple

DECIMAL_PLACES = 3


def _round_half_away(value: float, places: int = DECIMAL_PLACES) -> float:
    scale = 10 ** places
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale


def _format_decimal(value: float) -> str:
    text = f"{value:.{DECIMAL_PLACES}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def frac_to_decimal(odds: str) -> Tuple[str, str, bool]:
    """
    Convert fractional odds text to decimal odds text.

    Args:
        odds: Fractional odds such as "5/2" or "11/10"

    Returns:
        (decimal_text, original_text, ok). decimal_text is "" when ok is
        False; original_text is always `odds` unchanged.

    Examples:
        >>> frac_to_decimal("5/2")
        ('3.5', '5/2', True)
        >>> frac_to_decimal("1/3")
        ('1.333', '1/3', True)
        >>> frac_to_decimal("5/0")
        ('', '5/0', False)
    """
    parts = (odds or "").strip().split("/")
    if len(parts) != 2:
        return "", odds, False

    try:
        numerator = float(parts[0])
        denominator = float(parts[1])
    except ValueError:
        return "", odds, False

    if denominator == 0:
        return "", odds, False

    decimal = 1.0 + numerator / denominator
    if not math.isfinite(decimal):
        return "", odds, False

    return _format_decimal(_round_half_away(decimal)), odds, True
