"""
Integer-only proportional math (deterministic, no floats).

Every proportion in the ledger is either a basis-point integer or an exact
`Ratio`. Rounding is always explicit floor (`//`) on non-negative operands,
so independent re-executions agree bit for bit.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction


BPS_DENOM = 10_000

# Output scale of `exp_scaled`; emission math divides it back out.
EXP_SCALE = 10**18
# Internal precision of the Taylor series (well beyond EXP_SCALE).
_EXP_WORK = 10**36
# |x| bound keeps the series short and e^x far from overflowing an int64 ledger.
MAX_EXP_ARG = 64


@dataclass(frozen=True)
class Ratio:
    """Exact rational `num / den` with `den > 0`, kept in lowest terms."""

    num: int
    den: int = 1

    def __post_init__(self) -> None:
        for name, v in (("num", self.num), ("den", self.den)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if self.den <= 0:
            raise ValueError(f"den must be positive: {self.den}")
        f = Fraction(self.num, self.den)
        object.__setattr__(self, "num", f.numerator)
        object.__setattr__(self, "den", f.denominator)

    @classmethod
    def parse(cls, value: object) -> "Ratio":
        """
        Accept an int, a ``"num/den"`` string, a decimal string like ``"-0.015"``,
        or a mapping ``{"num": ..., "den": ...}``. Floats are rejected.
        """
        if isinstance(value, Ratio):
            return value
        if isinstance(value, bool) or isinstance(value, float):
            raise TypeError("ratios must be given as ints, strings or {num, den}, not floats")
        if isinstance(value, int):
            return cls(value, 1)
        if isinstance(value, str):
            try:
                f = Fraction(value.strip())
            except (ValueError, ZeroDivisionError) as exc:
                raise ValueError(f"invalid ratio: {value!r}") from exc
            return cls(f.numerator, f.denominator)
        if isinstance(value, dict):
            return cls(value.get("num"), value.get("den", 1))  # type: ignore[arg-type]
        raise TypeError(f"invalid ratio: {value!r}")

    def scaled(self, k: int) -> "Ratio":
        return Ratio(self.num * k, self.den)

    def __str__(self) -> str:
        return f"{self.num}/{self.den}"


def mul_bps(amount: int, bps: int) -> int:
    """floor(amount * bps / 10_000) for non-negative operands."""
    if amount < 0 or bps < 0:
        raise ValueError(f"mul_bps expects non-negative operands: {amount}, {bps}")
    return (amount * bps) // BPS_DENOM


def mul_div(a: int, b: int, c: int) -> int:
    """floor(a * b / c) for non-negative a, b and positive c."""
    if a < 0 or b < 0:
        raise ValueError(f"mul_div expects non-negative operands: {a}, {b}")
    if c <= 0:
        raise ValueError(f"mul_div divisor must be positive: {c}")
    return (a * b) // c


def _exp_pos_work(num: int, den: int) -> int:
    # Taylor series for e^(num/den), num >= 0, at _EXP_WORK scale. All terms
    # are non-negative, so truncation error is bounded by the term count.
    total = _EXP_WORK
    term = _EXP_WORK
    k = 1
    while True:
        term = (term * num) // (den * k)
        if term == 0:
            break
        total += term
        k += 1
    return total


def exp_scaled(x: Ratio, scale: int = EXP_SCALE) -> int:
    """
    floor(e^x * scale), computed with integers only.

    Negative arguments use e^-y = 1 / e^y on the working scale, so the series
    itself only ever sums positive terms.
    """
    if not isinstance(x, Ratio):
        raise TypeError("x must be a Ratio")
    if abs(x.num) > MAX_EXP_ARG * x.den:
        raise ValueError(f"exp argument out of range: {x}")
    if x.num == 0:
        return scale
    pos = _exp_pos_work(abs(x.num), x.den)
    if x.num > 0:
        return (pos * scale) // _EXP_WORK
    return (_EXP_WORK * scale) // pos
