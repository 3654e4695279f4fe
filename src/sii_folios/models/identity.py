"""RUT (Chilean taxpayer identifier) data model.

A RUT is written ``NNNNNNNN-D`` where ``D`` is the check digit (0-9 or K),
optionally with ``.`` thousands separators (``76.123.456-K``).
"""

import re
from dataclasses import dataclass

from sii_folios.utils.exceptions import InputError

_BASE_PATTERN = re.compile(r"^\d{1,9}$")
_CHECK_DIGIT_PATTERN = re.compile(r"^[0-9kK]$")


@dataclass(frozen=True)
class Rut:
    """A RUT split into base digits and check digit.

    Attributes:
        number: Base digits without separators (e.g. "76123456")
        check_digit: Check digit, uppercased (e.g. "K")
        raw: The string the RUT was parsed from

    Example:
        >>> rut = parse_rut("76.123.456-k")
        >>> rut.number, rut.check_digit
        ('76123456', 'K')
    """

    number: str
    check_digit: str
    raw: str

    @property
    def formatted(self) -> str:
        """Return the RUT as ``number-check_digit`` without separators."""
        return f"{self.number}-{self.check_digit}"

    def __str__(self) -> str:
        return self.formatted


def parse_rut(value: str) -> Rut:
    """Split a formatted RUT string into base digits and check digit.

    Dot separators are stripped; the remainder must split on ``-`` into
    exactly two non-empty parts.

    Args:
        value: RUT string such as "76123456-7" or "76.123.456-7"

    Returns:
        Parsed Rut

    Raises:
        InputError: If the RUT is empty or malformed

    Example:
        >>> parse_rut("12.345.678-5").formatted
        '12345678-5'
    """
    if not isinstance(value, str) or not value.strip():
        raise InputError("RUT is empty. Expected format NNNNNNNN-D.")

    parts = value.strip().replace(".", "").split("-")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InputError(
            f"Malformed RUT: '{value}'. Expected format NNNNNNNN-D."
        )

    number, check_digit = parts
    if not _BASE_PATTERN.match(number) or not _CHECK_DIGIT_PATTERN.match(check_digit):
        raise InputError(
            f"Malformed RUT: '{value}'. Base must be digits and check digit 0-9 or K."
        )

    return Rut(number=number, check_digit=check_digit.upper(), raw=value)
