"""
Token value types: `Symbol` and `Asset`.

Amounts are plain Python ints bounded to the signed 64-bit range used by the
ledger (`|amount| <= MAX_AMOUNT`). Assets only combine with assets of the
exact same symbol (precision and code).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import InvalidAmount, InvalidSymbol, SymbolMismatch


MAX_AMOUNT = (1 << 62) - 1
MAX_PRECISION = 18

_CODE_RE = re.compile(r"^[A-Z]{1,7}$")


@dataclass(frozen=True, order=True)
class Symbol:
    precision: int
    code: str

    def is_valid(self) -> bool:
        if not isinstance(self.precision, int) or isinstance(self.precision, bool):
            return False
        if not (0 <= self.precision <= MAX_PRECISION):
            return False
        return isinstance(self.code, str) and bool(_CODE_RE.fullmatch(self.code))

    def require_valid(self) -> "Symbol":
        if not self.is_valid():
            raise InvalidSymbol(f"invalid symbol name: {self.precision},{self.code}")
        return self

    @classmethod
    def parse(cls, text: str) -> "Symbol":
        """Parse ``"4,TOK"``."""
        if not isinstance(text, str) or "," not in text:
            raise InvalidSymbol(f"symbol must look like '<precision>,<CODE>': {text!r}")
        prec_raw, code = text.strip().split(",", 1)
        try:
            precision = int(prec_raw)
        except ValueError as exc:
            raise InvalidSymbol(f"invalid symbol precision: {prec_raw!r}") from exc
        return cls(precision=precision, code=code.strip()).require_valid()

    def __str__(self) -> str:
        return f"{self.precision},{self.code}"


@dataclass(frozen=True)
class Asset:
    amount: int
    symbol: Symbol

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise InvalidAmount(f"asset amount must be an int, got {self.amount!r}")
        if not isinstance(self.symbol, Symbol):
            raise InvalidSymbol("asset symbol must be a Symbol")

    def is_valid(self) -> bool:
        return -MAX_AMOUNT <= self.amount <= MAX_AMOUNT and self.symbol.is_valid()

    def _check(self, other: "Asset") -> None:
        if not isinstance(other, Asset):
            raise TypeError(f"cannot combine Asset with {type(other).__name__}")
        if other.symbol != self.symbol:
            raise SymbolMismatch(f"symbol mismatch: {self.symbol} vs {other.symbol}")

    def __add__(self, other: "Asset") -> "Asset":
        self._check(other)
        total = self.amount + other.amount
        if total > MAX_AMOUNT:
            raise InvalidAmount("addition overflow")
        if total < -MAX_AMOUNT:
            raise InvalidAmount("addition underflow")
        return Asset(total, self.symbol)

    def __sub__(self, other: "Asset") -> "Asset":
        self._check(other)
        diff = self.amount - other.amount
        if diff > MAX_AMOUNT:
            raise InvalidAmount("subtraction overflow")
        if diff < -MAX_AMOUNT:
            raise InvalidAmount("subtraction underflow")
        return Asset(diff, self.symbol)

    def __lt__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount < other.amount

    def __le__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount <= other.amount

    def __gt__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount > other.amount

    def __ge__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount >= other.amount

    def with_amount(self, amount: int) -> "Asset":
        return Asset(amount, self.symbol)

    @classmethod
    def zero(cls, symbol: Symbol) -> "Asset":
        return cls(0, symbol)

    @classmethod
    def parse(cls, text: str) -> "Asset":
        """
        Parse ``"12.3400 TOK"``.

        The number of fractional digits fixes the precision; ``"5 TOK"`` has
        precision 0.
        """
        if not isinstance(text, str):
            raise InvalidAmount(f"asset must be a string, got {type(text).__name__}")
        parts = text.strip().split(" ")
        if len(parts) != 2:
            raise InvalidAmount(f"asset must look like '<amount> <CODE>': {text!r}")
        number, code = parts
        negative = number.startswith("-")
        if negative:
            number = number[1:]
        whole, _, frac = number.partition(".")
        if not whole.isdigit() or (frac and not frac.isdigit()) or number.endswith("."):
            raise InvalidAmount(f"invalid asset amount: {text!r}")
        symbol = Symbol(precision=len(frac), code=code).require_valid()
        amount = int(whole + frac)
        if negative:
            amount = -amount
        asset = cls(amount, symbol)
        if not asset.is_valid():
            raise InvalidAmount(f"asset amount out of range: {text!r}")
        return asset

    def __str__(self) -> str:
        sign = "-" if self.amount < 0 else ""
        digits = str(abs(self.amount))
        p = self.symbol.precision
        if p == 0:
            return f"{sign}{digits} {self.symbol.code}"
        digits = digits.rjust(p + 1, "0")
        return f"{sign}{digits[:-p]}.{digits[-p:]} {self.symbol.code}"
