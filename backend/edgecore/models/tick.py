"""Tick data model.

Ticks sit on the hot path (one object per feed message), so they use a
slotted dataclass with float prices instead of a Pydantic model.
"""

from dataclasses import dataclass

_DIGITS = "0123456789"


def format_quote(quote: str | int | float, decimals: int = 2) -> str:
    """Render a feed quote as the string its last digit is read from.

    String quotes are used as received. Numeric quotes are formatted with a
    fixed number of decimals.
    """
    if isinstance(quote, str):
        return quote.strip()
    if isinstance(quote, bool) or not isinstance(quote, (int, float)):
        raise TypeError(f"Unsupported quote type: {type(quote).__name__}")
    return f"{quote:.{decimals}f}"


def last_digit(quote: str | int | float, decimals: int = 2) -> int:
    """Extract the final character of the formatted quote as an integer.

    This is a character read, not a rounding of the price.

    Raises:
        ValueError: If the formatted quote does not end in a digit.
    """
    text = format_quote(quote, decimals)
    if not text or text[-1] not in _DIGITS:
        raise ValueError(f"Quote has no trailing digit: {quote!r}")
    return int(text[-1])


@dataclass(frozen=True, slots=True)
class Tick:
    """One price observation for an instrument."""

    instrument: str
    price: float
    last_digit: int
    epoch: int  # Unix timestamp in seconds

    @classmethod
    def from_quote(
        cls,
        instrument: str,
        quote: str | int | float,
        epoch: int | float | str,
        decimals: int = 2,
    ) -> "Tick":
        """Build a tick from raw feed fields.

        Raises:
            TypeError / ValueError: If the quote or epoch cannot be read.
        """
        digit = last_digit(quote, decimals)
        return cls(
            instrument=instrument,
            price=float(quote),
            last_digit=digit,
            epoch=int(epoch),
        )

    @property
    def is_even(self) -> bool:
        return self.last_digit % 2 == 0

    @property
    def is_low(self) -> bool:
        """Digit in the 0-4 half."""
        return self.last_digit <= 4

    def to_dict(self) -> dict:
        return {
            "instrument": self.instrument,
            "price": self.price,
            "digit": self.last_digit,
            "epoch": self.epoch,
        }
