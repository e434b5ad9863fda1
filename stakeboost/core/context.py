"""
Per-invocation execution context.

A `TxContext` bundles everything one operation may touch: the staged table
store, the contract's own name, the block time, the set of authorizing
principals, and the host effects (deferred calls, notifications) staged for
commit. Components never hold state of their own; they read and write through
the context passed to each call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Mapping, Protocol, Tuple

from ..errors import DuplicateRequest, UnauthorizedPrincipal, UnknownAccount
from ..state.tables import TableStore


@dataclass(frozen=True)
class DeferredCall:
    """An action to be delivered back to `contract` later, authorized by `authorizer`."""

    contract: str
    action: str
    args: Mapping[str, Any]
    authorizer: str


@dataclass(frozen=True)
class ScheduledEffect:
    call: DeferredCall
    delay: int
    request_id: str


class HostEnv(Protocol):
    """What the ledger needs from its host."""

    def now(self) -> int: ...

    def is_account(self, name: str) -> bool: ...

    def is_pending(self, request_id: str) -> bool: ...

    def schedule(self, call: DeferredCall, delay: int, request_id: str) -> None: ...

    def notify(self, principal: str, action: str) -> None: ...


@dataclass
class TxEffects:
    scheduled: List[ScheduledEffect] = field(default_factory=list)
    notified: List[Tuple[str, str]] = field(default_factory=list)

    def flush(self, host: HostEnv) -> None:
        for principal, action in self.notified:
            host.notify(principal, action)
        for eff in self.scheduled:
            host.schedule(eff.call, eff.delay, eff.request_id)


@dataclass
class TxContext:
    store: TableStore
    contract: str
    now: int
    auth: FrozenSet[str]
    host: HostEnv
    action: str = ""
    effects: TxEffects = field(default_factory=TxEffects)

    def has_auth(self, principal: str) -> bool:
        return principal in self.auth

    def require_auth(self, principal: str) -> None:
        if principal not in self.auth:
            raise UnauthorizedPrincipal(principal)

    def is_account(self, name: str) -> bool:
        return name == self.contract or self.host.is_account(name)

    def require_account(self, name: str) -> None:
        if not self.is_account(name):
            raise UnknownAccount(f"account does not exist: {name}")

    def notify(self, principal: str) -> None:
        self.effects.notified.append((principal, self.action))

    def schedule(self, call: DeferredCall, delay: int, request_id: str) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        staged = any(e.request_id == request_id for e in self.effects.scheduled)
        if staged or self.host.is_pending(request_id):
            raise DuplicateRequest(f"request already pending: {request_id}")
        self.effects.scheduled.append(ScheduledEffect(call=call, delay=delay, request_id=request_id))
