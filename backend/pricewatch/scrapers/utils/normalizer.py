"""Price normalization helpers shared by adapters."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional


class PriceNormalizer:
    """Turn vendor price values into plain decimal strings.

    Adapters publish prices as strings so no float rounding leaks into
    storage; numeric JSON values are converted through ``Decimal(str(x))``.
    """

    @staticmethod
    def to_decimal(value: Any) -> Optional[Decimal]:
        """Parse a price value into a Decimal.

        Args:
            value: str, int, float or Decimal price

        Returns:
            Decimal or None if the value is empty or not numeric
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, Decimal):
            return value if value.is_finite() else None
        try:
            parsed = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, ValueError):
            return None
        return parsed if parsed.is_finite() else None

    @staticmethod
    def to_price_string(value: Any) -> Optional[str]:
        """Format a price value as a plain decimal string (no exponent).

        Examples:
            125 -> "125", 99.5 -> "99.5", "1,250.00" -> "1250.00"
        """
        parsed = PriceNormalizer.to_decimal(value)
        if parsed is None:
            return None
        return format(parsed, "f")

    @staticmethod
    def prices_equal(left: Any, right: Any) -> bool:
        """Numeric equality, so "100", "100.0" and 100 compare equal."""
        a = PriceNormalizer.to_decimal(left)
        b = PriceNormalizer.to_decimal(right)
        return a is not None and b is not None and a == b
