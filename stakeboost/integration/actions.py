"""
Dict-encoded action dispatch for the token contract.

An action is `{"action": <name>, "args": {...}}` with assets and symbols in
text form (`"12.3400 TOK"`, `"4,TOK"`). `apply_action` reports ledger
rejections and malformed arguments in `ActionResult`; `apply_action_or_raise`
is the raising variant. `apply_signed_action` derives the auth set from BLS
signed call envelopes before dispatching.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol, Tuple, cast

from ..core.contract import TokenContract
from ..errors import LedgerError
from ..state.asset import Asset, Symbol
from .call_signing import SignedCall, authorized_principals


BAD_REQUEST = "BadRequest"


class ActionError(ValueError):
    """Raised by `apply_action_or_raise` for malformed or rejected actions."""

    def __init__(self, message: str, code: str) -> None:
        self.code = code
        super().__init__(message)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    result: Any = None
    error: Optional[str] = None
    code: Optional[str] = None


def _require_str(value: Any, *, name: str, non_empty: bool = True, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    if non_empty and not value:
        raise ValueError(f"{name} must be non-empty")
    if max_len > 0 and len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str, non_negative: bool = False) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an int")
    if non_negative and value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _asset(args: Mapping[str, Any], name: str) -> Asset:
    return Asset.parse(_require_str(args.get(name), name=name, max_len=64))


def _symbol(args: Mapping[str, Any], name: str) -> Symbol:
    return Symbol.parse(_require_str(args.get(name), name=name, max_len=32))


def _name(args: Mapping[str, Any], name: str) -> str:
    return _require_str(args.get(name), name=name, max_len=64)


def _decode_create(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {"max_supply": _asset(args, "maximum_supply")}


def _decode_transfer(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "from_": _name(args, "from"),
        "to": _name(args, "to"),
        "quantity": _asset(args, "quantity"),
        "memo": _require_str(args.get("memo", ""), name="memo", non_empty=False, max_len=0),
    }


def _decode_transfer_staked(args: Mapping[str, Any]) -> Dict[str, Any]:
    kwargs = _decode_transfer(args)
    kwargs["duration_index"] = _require_int(args.get("duration_index"), name="duration_index")
    return kwargs


def _decode_open(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {"owner": _name(args, "owner"), "symbol": _symbol(args, "symbol"), "payer": _name(args, "ram_payer")}


def _decode_close(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {"owner": _name(args, "owner"), "symbol": _symbol(args, "symbol")}


def _decode_add_stake(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "staker": _name(args, "staker"),
        "quantity": _asset(args, "quantity"),
        "duration_index": _require_int(args.get("duration_index"), name="duration_index"),
    }


def _decode_update(args: Mapping[str, Any]) -> Dict[str, Any]:
    return {"symbol": _symbol(args, "symbol")}


# action name -> (argument decoder, TokenContract method)
_DISPATCH: Dict[str, Tuple[Callable[[Mapping[str, Any]], Dict[str, Any]], str]] = {
    "create": (_decode_create, "create"),
    "transfer": (_decode_transfer, "transfer"),
    "transferstkd": (_decode_transfer_staked, "transfer_staked"),
    "open": (_decode_open, "open"),
    "close": (_decode_close, "close"),
    "addstake": (_decode_add_stake, "add_stake"),
    "update": (_decode_update, "update"),
}


def _split_action(action: Any) -> Tuple[Optional[str], Mapping[str, Any], Optional[str]]:
    """(name, args, error) for an encoded action; `error` is set when it is malformed."""
    if not isinstance(action, Mapping):
        return None, {}, "action must be an object"
    name = action.get("action")
    if not isinstance(name, str) or name not in _DISPATCH:
        return None, {}, f"unknown action: {name!r}"
    args = action.get("args", {})
    if not isinstance(args, Mapping):
        return None, {}, "args must be an object"
    return name, args, None


def apply_action(contract: TokenContract, action: Mapping[str, Any], *, auth: Iterable[str]) -> ActionResult:
    """
    Decode and run one action against `contract`.

    Malformed arguments come back as `BadRequest` and ledger rejections under
    their own code. Anything else raised while running the operation is a
    fault in the contract and propagates.
    """
    name, args, error = _split_action(action)
    if name is None:
        return ActionResult(ok=False, error=error, code=BAD_REQUEST)
    decode, method = _DISPATCH[name]

    try:
        kwargs = decode(args)
    except LedgerError as exc:
        return ActionResult(ok=False, error=str(exc), code=exc.code)
    except (TypeError, ValueError) as exc:
        return ActionResult(ok=False, error=str(exc), code=BAD_REQUEST)

    try:
        result = getattr(contract, method)(**kwargs, auth=frozenset(auth))
    except LedgerError as exc:
        return ActionResult(ok=False, error=str(exc), code=exc.code)
    return ActionResult(ok=True, result=result)


def apply_action_or_raise(contract: TokenContract, action: Mapping[str, Any], *, auth: Iterable[str]) -> Any:
    res = apply_action(contract, action, auth=auth)
    if not res.ok:
        raise ActionError(res.error or "action failed", res.code or BAD_REQUEST)
    return res.result


class KeyedHost(Protocol):
    def key_registry(self) -> Mapping[str, Optional[str]]: ...


def apply_signed_action(
    contract: TokenContract,
    action: Mapping[str, Any],
    calls: Iterable[SignedCall],
    *,
    chain_id: str,
    key_registry: Optional[Mapping[str, Optional[str]]] = None,
) -> ActionResult:
    """
    Run `action` authorized by the signed envelopes in `calls`.

    Only envelopes over exactly this action and these args count, each checked
    against the signer's key in `key_registry` (the host's registry by default).
    A missing or bad signature leaves the principal out of the auth set, so
    the ledger rejects the call with `UnauthorizedPrincipal`.
    """
    name, args, error = _split_action(action)
    if name is None:
        return ActionResult(ok=False, error=error, code=BAD_REQUEST)
    registry = key_registry if key_registry is not None else cast(KeyedHost, contract.host).key_registry()
    try:
        auth = authorized_principals(calls, registry, chain_id=chain_id, action=name, args=args)
    except (TypeError, ValueError) as exc:
        # args that have no canonical encoding cannot have been signed
        return ActionResult(ok=False, error=str(exc), code=BAD_REQUEST)
    return apply_action(contract, action, auth=auth)
