"""VAT rates used on Hungarian retail documents."""

from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError

from purchasing.shared.rounding import round_half_away


class VAT(Enum):
    """Closed set of VAT codes.

    ``AAM``, ``FAD`` and ``TAM`` are exempt categories; the numeric codes are
    percentage rates.
    """

    AAM = "AAM"
    FAD = "FAD"
    TAM = "TAM"
    RATE_5 = "5"
    RATE_18 = "18"
    RATE_27 = "27"

    @classmethod
    def parse(cls, code) -> "VAT":
        if isinstance(code, cls):
            return code
        try:
            return cls(str(code).strip().upper())
        except ValueError:
            raise ValidationError({"vat": [f"Invalid VAT code {code!r}; expected one of 5, 18, 27, AAM, TAM, FAD"]})

    @property
    def is_exempt(self) -> bool:
        return self in (VAT.AAM, VAT.FAD, VAT.TAM)

    @property
    def multiplier(self) -> Decimal:
        if self.is_exempt:
            return Decimal("1")
        return 1 + Decimal(self.value) / 100


def vat_multiply(net: int, rate) -> int:
    """Gross amount for a net amount at the given VAT rate.

    >>> vat_multiply(1000, "27")
    1270
    >>> vat_multiply(999, "AAM")
    999
    """
    return round_half_away(Decimal(net) * VAT.parse(rate).multiplier)


def validate_vat(code) -> str:
    """Normalise a VAT code to its canonical string form."""
    return VAT.parse(code).value
