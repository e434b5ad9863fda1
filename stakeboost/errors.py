"""
Exception types for the token ledger.

Every validation failure raises a `LedgerError` subclass. The facade runs each
operation against staged state, so raising aborts the whole operation with no
partial effects. `code` is a stable identifier used by the integration shell
(`ActionResult.code`).
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger rejections."""

    code = "LedgerError"


class InvalidSymbol(LedgerError):
    code = "InvalidSymbol"


class InvalidAmount(LedgerError):
    code = "InvalidAmount"


class InvalidSupply(InvalidAmount):
    """Raised by `create` when the maximum supply is malformed or non-positive."""

    code = "InvalidSupply"


class DuplicateToken(LedgerError):
    code = "DuplicateToken"


class UnknownToken(LedgerError):
    code = "UnknownToken"


class SymbolMismatch(LedgerError):
    code = "SymbolMismatch"


class SelfTransfer(LedgerError):
    code = "SelfTransfer"


class UnauthorizedPrincipal(LedgerError):
    code = "UnauthorizedPrincipal"

    def __init__(self, principal: str) -> None:
        self.principal = principal
        super().__init__(f"missing authority of {principal}")


class UnknownAccount(LedgerError):
    code = "UnknownAccount"


class InsufficientUnstakedBalance(LedgerError):
    code = "InsufficientUnstakedBalance"


class MemoTooLong(LedgerError):
    code = "MemoTooLong"


class SupplyExceeded(LedgerError):
    code = "SupplyExceeded"


class DurationIndexOutOfRange(LedgerError):
    code = "DurationIndexOutOfRange"


class NonZeroBalanceOnClose(LedgerError):
    code = "NonZeroBalanceOnClose"


class MissingBalanceRow(LedgerError):
    code = "MissingBalanceRow"


class DuplicateRequest(LedgerError):
    """Raised when a deferred call is scheduled under a request id that is still pending."""

    code = "DuplicateRequest"


class InvariantViolation(LedgerError):
    """Raised when a post-state violates one or more global invariants."""

    code = "InvariantViolation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
