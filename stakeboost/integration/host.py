"""
In-memory host environment.

Implements the `HostEnv` protocol for tests and local simulation: a settable
clock, an account registry (optionally with a BLS public key per account), a
queue of deferred calls keyed by request id, and a notification log.

Deferred calls are delivered in `(due_time, enqueue_order)` order through the
action dispatcher, authorized by the principal that scheduled them. A failed
delivery is logged and dropped; it is not retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from ..core.context import DeferredCall
from ..errors import DuplicateRequest
from .actions import ActionResult, apply_action

if TYPE_CHECKING:  # pragma: no cover
    from ..core.contract import TokenContract


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingCall:
    due: int
    seq: int
    request_id: str
    call: DeferredCall


@dataclass(frozen=True)
class Notification:
    principal: str
    action: str
    at: int


class InMemoryHost:
    def __init__(self, *, now: int = 0) -> None:
        if not isinstance(now, int) or isinstance(now, bool) or now < 0:
            raise ValueError("now must be a non-negative int")
        self._now = now
        self._accounts: Dict[str, Optional[str]] = {}
        self._pending: Dict[str, PendingCall] = {}
        self._seq = 0
        self.notifications: List[Notification] = []

    # -- clock -----------------------------------------------------------------

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if not isinstance(seconds, int) or isinstance(seconds, bool) or seconds < 0:
            raise ValueError("seconds must be a non-negative int")
        self._now += seconds
        return self._now

    def set_time(self, t: int) -> None:
        if t < self._now:
            raise ValueError(f"clock cannot move backwards: {t} < {self._now}")
        self._now = t

    # -- accounts --------------------------------------------------------------

    def create_account(self, name: str, pubkey_hex: Optional[str] = None) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("account name must be a non-empty str")
        if name in self._accounts:
            raise ValueError(f"account already exists: {name}")
        self._accounts[name] = pubkey_hex

    def is_account(self, name: str) -> bool:
        return name in self._accounts

    def key_registry(self) -> Dict[str, Optional[str]]:
        return dict(self._accounts)

    # -- deferred calls --------------------------------------------------------

    def is_pending(self, request_id: str) -> bool:
        return request_id in self._pending

    def schedule(self, call: DeferredCall, delay: int, request_id: str) -> None:
        if request_id in self._pending:
            raise DuplicateRequest(f"request already pending: {request_id}")
        self._pending[request_id] = PendingCall(due=self._now + delay, seq=self._seq, request_id=request_id, call=call)
        self._seq += 1

    def pending(self) -> List[PendingCall]:
        return sorted(self._pending.values(), key=lambda p: (p.due, p.seq))

    def next_due(self, contract: Optional[str] = None) -> Optional[int]:
        """Earliest due time in the queue, optionally only among calls addressed to `contract`."""
        for p in self.pending():
            if contract is None or p.call.contract == contract:
                return p.due
        return None

    def deliver_due(self, contract: "TokenContract") -> List[ActionResult]:
        """Run every call addressed to `contract` that is due at the current time."""
        results: List[ActionResult] = []
        while True:
            due = [p for p in self.pending() if p.due <= self._now and p.call.contract == contract.contract]
            if not due:
                return results
            item = due[0]
            del self._pending[item.request_id]
            result = apply_action(
                contract,
                {"action": item.call.action, "args": dict(item.call.args)},
                auth={item.call.authorizer},
            )
            if not result.ok:
                logger.warning(
                    "deferred %s (request %s) failed and was dropped: %s",
                    item.call.action,
                    item.request_id,
                    result.error,
                )
            results.append(result)

    def run_until(self, contract: "TokenContract", t: int) -> List[ActionResult]:
        """
        Advance the clock to `t`, stopping at each due time of `contract`'s calls to deliver them.

        Calls addressed to other contracts stay queued and never hold up this one.
        """
        results: List[ActionResult] = []
        while True:
            nxt = self.next_due(contract.contract)
            if nxt is None or nxt > t:
                break
            self.set_time(max(nxt, self._now))
            results.extend(self.deliver_due(contract))
        self.set_time(t)
        return results

    # -- notifications ---------------------------------------------------------

    def notify(self, principal: str, action: str) -> None:
        self.notifications.append(Notification(principal=principal, action=action, at=self._now))
