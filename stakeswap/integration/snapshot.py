"""
Snapshot persistence for the router arena and the staking ledger.

A snapshot is a plain dict encoded as canonical JSON (sorted keys, no
whitespace, no floats). Its commitment is

    sha256(domain_sep("snapshot", version) || canonical_json(snapshot))

Round-trip property (tested): restoring a snapshot and snapshotting again
yields the same commitment.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..state.canonical import CANONICAL_ENCODING_VERSION, canonical_json_bytes, domain_sep_bytes, sha256_hex
from ..state.pools import PoolState
from ..state.staking import StakingAccount, StakingGlobalState, StakingState
from .router import DEXRouter
from .ledger import StakingLedger

SNAPSHOT_VERSION = 2

_POOL_INT_FIELDS = ("reserve_a", "reserve_b", "total_shares", "fee_bps")
_GLOBAL_INT_FIELDS = (
    "total_staked",
    "reward_rate",
    "reward_per_token_stored",
    "reward_remainder",
    "last_update_time",
)
_ACCOUNT_FIELDS = ("staked", "reward_per_token_paid", "rewards_accrued", "reward_dust")


def _require_int(name: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return int(value)


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    return value


# -- Pools -------------------------------------------------------------------

def pool_to_dict(pool: PoolState) -> Dict[str, Any]:
    return {
        "pool_id": pool.pool_id,
        "token_a": pool.token_a,
        "token_b": pool.token_b,
        "reserve_a": pool.reserve_a,
        "reserve_b": pool.reserve_b,
        "total_shares": pool.total_shares,
        "shares": {k: pool.shares[k] for k in sorted(pool.shares)},
        "fee_bps": pool.fee_bps,
        "seed_price": None if pool.seed_price is None else list(pool.seed_price),
    }


def pool_from_dict(d: Mapping[str, Any]) -> PoolState:
    shares = d["shares"]
    if not isinstance(shares, Mapping):
        raise TypeError("shares must be a mapping")
    seed = d.get("seed_price")
    if seed is not None:
        if not isinstance(seed, (list, tuple)) or len(seed) != 2:
            raise TypeError("seed_price must be a [num, den] pair or null")
        seed = (_require_int("seed_price[0]", seed[0]), _require_int("seed_price[1]", seed[1]))
    kwargs: Dict[str, Any] = {name: _require_int(name, d[name]) for name in _POOL_INT_FIELDS}
    return PoolState(
        pool_id=_require_str("pool_id", d["pool_id"]),
        token_a=_require_str("token_a", d["token_a"]),
        token_b=_require_str("token_b", d["token_b"]),
        shares={_require_str("share holder", k): _require_int(f"shares[{k}]", v) for k, v in shares.items()},
        seed_price=seed,
        **kwargs,
    )


# -- Staking -----------------------------------------------------------------

def staking_state_to_dict(state: StakingState) -> Dict[str, Any]:
    g = state.global_state
    return {
        "global": {
            "staking_token": g.staking_token,
            "reward_token": g.reward_token,
            "operator": g.operator,
            "paused": g.paused,
            **{name: getattr(g, name) for name in _GLOBAL_INT_FIELDS},
        },
        "accounts": {
            acct: {name: getattr(state.accounts[acct], name) for name in _ACCOUNT_FIELDS}
            for acct in sorted(state.accounts)
        },
    }


def staking_state_from_dict(d: Mapping[str, Any]) -> StakingState:
    g = d["global"]
    paused = g["paused"]
    if not isinstance(paused, bool):
        raise TypeError("paused must be a bool")
    global_state = StakingGlobalState(
        staking_token=_require_str("staking_token", g["staking_token"]),
        reward_token=_require_str("reward_token", g["reward_token"]),
        operator=_require_str("operator", g["operator"]),
        paused=paused,
        **{name: _require_int(name, g[name]) for name in _GLOBAL_INT_FIELDS},
    )
    accounts = {
        _require_str("account", acct): StakingAccount(
            **{name: _require_int(f"{acct}.{name}", rec[name]) for name in _ACCOUNT_FIELDS}
        )
        for acct, rec in d["accounts"].items()
    }
    return StakingState(global_state=global_state, accounts=accounts)


# -- Whole snapshot ----------------------------------------------------------

def take_snapshot(router: Optional[DEXRouter] = None, ledger: Optional[StakingLedger] = None) -> Dict[str, Any]:
    snap: Dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "encoding": CANONICAL_ENCODING_VERSION,
        "router": None,
        "ledger": None,
    }
    if router is not None:
        snap["router"] = {
            "address": router.address,
            "pools": [pool_to_dict(p) for p in router.pools()],
        }
    if ledger is not None:
        snap["ledger"] = {
            "address": ledger.address,
            "state": staking_state_to_dict(ledger.state),
        }
    return snap


def snapshot_bytes(snap: Mapping[str, Any]) -> bytes:
    return canonical_json_bytes(snap)


def snapshot_commitment(snap: Mapping[str, Any]) -> str:
    return sha256_hex(domain_sep_bytes("snapshot", SNAPSHOT_VERSION) + snapshot_bytes(snap))


def _check_version(snap: Mapping[str, Any]) -> None:
    if snap.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {snap.get('version')!r}")


def restore_router(snap: Mapping[str, Any], router: DEXRouter) -> DEXRouter:
    """Load the snapshot's pools into *router* (which must have none yet)."""
    _check_version(snap)
    data = snap.get("router")
    if data is None:
        raise ValueError("snapshot has no router section")
    pools: List[PoolState] = [pool_from_dict(p) for p in data["pools"]]
    router.restore_pools(pools)
    return router


def restore_staking_state(snap: Mapping[str, Any]) -> StakingState:
    _check_version(snap)
    data = snap.get("ledger")
    if data is None:
        raise ValueError("snapshot has no ledger section")
    return staking_state_from_dict(data["state"])


def save(path: Union[str, Path], snap: Mapping[str, Any]) -> str:
    """Write *snap* as canonical JSON; returns its commitment."""
    Path(path).write_bytes(snapshot_bytes(snap))
    return snapshot_commitment(snap)


def load(path: Union[str, Path]) -> Dict[str, Any]:
    obj = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise TypeError("snapshot must be a JSON object")
    _check_version(obj)
    return obj
