"""
BLS12-381 signed call envelopes.

The ledger core only sees a set of authorizing principals. This module is how
the shell derives that set: each principal signs

    SHA256( domain_sep(f"call_sig:{chain_id}", v1) || canonical_json_bytes(signing_dict) )

with `py_ecc.bls.G2Basic`, where `signing_dict` is `{signer, action, args}`.
Binding the chain id into the domain separator keeps a signature from being
replayed on another deployment.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from py_ecc.bls import G2Basic

from ..state.canonical import canonical_hex_fixed, canonical_json_bytes, domain_sep_bytes


logger = logging.getLogger(__name__)

CALL_SIG_VERSION = 1
PUBKEY_BYTES = 48
SIGNATURE_BYTES = 96


@dataclass(frozen=True)
class SignedCall:
    signer: str
    action: str
    args: Mapping[str, Any]
    signature: str  # 0x-prefixed hex, 96 bytes

    def signing_dict(self) -> Dict[str, Any]:
        return {"signer": self.signer, "action": self.action, "args": dict(self.args)}


def _signing_hash(signing_dict: Mapping[str, Any], chain_id: str) -> bytes:
    msg = domain_sep_bytes(f"call_sig:{chain_id}", version=CALL_SIG_VERSION) + canonical_json_bytes(signing_dict)
    return hashlib.sha256(msg).digest()


def pubkey_hex_from_privkey(privkey: int) -> str:
    if not isinstance(privkey, int) or isinstance(privkey, bool) or privkey <= 0:
        raise ValueError("privkey must be a positive int")
    return "0x" + G2Basic.SkToPk(privkey).hex()


def sign_call(signer: str, action: str, args: Mapping[str, Any], *, privkey: int, chain_id: str) -> SignedCall:
    if not isinstance(privkey, int) or isinstance(privkey, bool) or privkey <= 0:
        raise ValueError("privkey must be a positive int")
    unsigned = SignedCall(signer=signer, action=action, args=dict(args), signature="")
    sig = G2Basic.Sign(privkey, _signing_hash(unsigned.signing_dict(), chain_id))
    return SignedCall(signer=signer, action=action, args=dict(args), signature="0x" + sig.hex())


def verify_call(call: SignedCall, *, pubkey_hex: str, chain_id: str) -> Tuple[bool, Optional[str]]:
    try:
        pk = bytes.fromhex(canonical_hex_fixed(pubkey_hex, nbytes=PUBKEY_BYTES, name="pubkey")[2:])
        sig = bytes.fromhex(canonical_hex_fixed(call.signature, nbytes=SIGNATURE_BYTES, name="signature")[2:])
    except (TypeError, ValueError) as exc:
        return False, str(exc)
    msg_hash = _signing_hash(call.signing_dict(), chain_id)
    if not G2Basic.Verify(pk, msg_hash, sig):
        return False, f"invalid signature for {call.signer}"
    return True, None


def authorized_principals(
    calls: Iterable[SignedCall],
    key_registry: Mapping[str, Optional[str]],
    *,
    chain_id: str,
    action: Optional[str] = None,
    args: Optional[Mapping[str, Any]] = None,
) -> FrozenSet[str]:
    """
    Principals whose signature verifies against their registered key.

    When `action` / `args` are given, only envelopes over exactly that call
    count. Signers without a registered key never authorize anything.
    """
    out = set()
    for call in calls:
        if action is not None and call.action != action:
            continue
        if args is not None and dict(call.args) != dict(args):
            continue
        pubkey = key_registry.get(call.signer)
        if not pubkey:
            logger.warning("no public key registered for %s; signature ignored", call.signer)
            continue
        ok, err = verify_call(call, pubkey_hex=pubkey, chain_id=chain_id)
        if not ok:
            logger.warning("rejected signature from %s: %s", call.signer, err)
            continue
        out.add(call.signer)
    return frozenset(out)
