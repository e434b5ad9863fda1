"""
Imperative shell: in-memory host, action dispatch, signed calls and snapshots
"""

from .actions import ActionError, ActionResult, apply_action, apply_action_or_raise, apply_signed_action
from .host import InMemoryHost, Notification, PendingCall
from .snapshot import LEDGER_SNAPSHOT_VERSION, LedgerSnapshot, snapshot_from_store, store_from_snapshot

__all__ = [
    "ActionError",
    "ActionResult",
    "apply_action",
    "apply_action_or_raise",
    "apply_signed_action",
    "InMemoryHost",
    "Notification",
    "PendingCall",
    "LEDGER_SNAPSHOT_VERSION",
    "LedgerSnapshot",
    "snapshot_from_store",
    "store_from_snapshot",
]
