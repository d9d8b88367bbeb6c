"""
`stakeswap` command line: offline replays of the pool and staking flows.

    stakeswap demo-swap  [--amount-in N] [--snapshot PATH]
    stakeswap demo-stake [--amount N] [--seconds N] [--rate N] [--snapshot PATH]

`--config PATH` loads an `EngineConfig` YAML file (environment overrides apply).
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from ..core.types import TxResult
from ..state.tokens import InMemoryToken
from . import snapshot
from .clock import ManualClock
from .config import EngineConfig
from .ledger import StakingLedger
from .router import DEXRouter

ALICE = "alice"
DEMO_START = 1_700_000_000


def _fail(step: str, result: TxResult) -> int:
    kind = result.error.value if result.error else "?"
    print(f"[stakeswap] FAIL ({step}): {kind}: {result.detail}")
    return 1


def _write_snapshot(path: Optional[str], **engines) -> None:
    if not path:
        return
    snap = snapshot.take_snapshot(**engines)
    commitment = snapshot.save(path, snap)
    print(f"[stakeswap] snapshot written to {path} commitment={commitment}")


def demo_swap(cfg: EngineConfig, *, amount_in: int, snapshot_path: Optional[str]) -> int:
    clock = ManualClock(DEMO_START)
    router = DEXRouter(cfg, clock=clock)
    tka, tkb = InMemoryToken("TKA"), InMemoryToken("TKB")
    for token in (tka, tkb):
        router.register_token(token)
        token.mint(ALICE, 10_000)
        token.approve(ALICE, router.address, 10_000)

    deadline = clock() + 600
    added = router.add_liquidity(ALICE, "TKA", "TKB", 1000, 1000, deadline)
    if not added.ok:
        return _fail("add liquidity", added)
    pool = router.get_pool("TKA", "TKB")
    print(f"[stakeswap] pool_id={pool.pool_id}")
    print(f"[stakeswap] shares minted={added.value.shares_minted}")
    print(f"[stakeswap] reserves after add:  TKA={pool.reserve_a} TKB={pool.reserve_b} k={pool.get_constant_product()}")

    before_out = tkb.balance_of(ALICE)
    swapped = router.swap_exact_input_single(ALICE, "TKA", "TKB", amount_in, 1, deadline)
    if not swapped.ok:
        return _fail("swap", swapped)
    pool = router.get_pool("TKA", "TKB")
    print(f"[stakeswap] swap {amount_in} TKA -> {swapped.value.amount_out} TKB")
    print(f"[stakeswap] reserves after swap: TKA={pool.reserve_a} TKB={pool.reserve_b} k={pool.get_constant_product()}")
    print(f"[stakeswap] alice TKB delta={tkb.balance_of(ALICE) - before_out}")

    _write_snapshot(snapshot_path, router=router)
    print("[stakeswap] OK: swap executed")
    return 0


def demo_stake(cfg: EngineConfig, *, amount: int, seconds: int, rate: int, snapshot_path: Optional[str]) -> int:
    clock = ManualClock(DEMO_START)
    stk, rwd = InMemoryToken("STK"), InMemoryToken("RWD")
    ledger = StakingLedger(stk, rwd, cfg, clock=clock)
    stk.mint(ALICE, amount)
    stk.approve(ALICE, ledger.address, amount)
    rwd.mint(cfg.operator, rate * seconds)

    steps = [
        ("set reward rate", lambda: ledger.set_reward_rate(cfg.operator, rate)),
        ("fund rewards", lambda: ledger.fund_rewards(cfg.operator, rate * seconds)),
        ("stake", lambda: ledger.stake(ALICE, amount)),
    ]
    for name, run in steps:
        result = run()
        if not result.ok:
            return _fail(name, result)

    clock.advance(seconds)
    print(f"[stakeswap] staked={ledger.balance_of(ALICE)} total={ledger.total_staked()} rate={ledger.reward_rate()}")
    print(f"[stakeswap] earned after {seconds}s: {ledger.earned(ALICE)}")

    paid = ledger.get_reward(ALICE)
    if not paid.ok:
        return _fail("get reward", paid)
    print(f"[stakeswap] reward paid={paid.value} alice RWD={rwd.balance_of(ALICE)}")

    _write_snapshot(snapshot_path, ledger=ledger)
    print("[stakeswap] OK: rewards claimed")
    return 0


def _positive_int(raw: str) -> int:
    try:
        v = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {raw!r}") from exc
    if v <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {v}")
    return v


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stakeswap", description="StakeSwap offline demos")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--snapshot", help="write a JSON snapshot of the final state to PATH")
    sub = parser.add_subparsers(dest="command", required=True)

    swap = sub.add_parser("demo-swap", help="bootstrap a (1000, 1000) pool and swap into it")
    swap.add_argument("--amount-in", type=_positive_int, default=100)

    stake = sub.add_parser("demo-stake", help="stake, let rewards accrue, then claim")
    stake.add_argument("--amount", type=_positive_int, default=100)
    stake.add_argument("--seconds", type=_positive_int, default=3600)
    stake.add_argument("--rate", type=_positive_int, default=1)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = EngineConfig.load(args.config)
    logging.basicConfig(level=getattr(logging, cfg.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "demo-swap":
        return demo_swap(cfg, amount_in=args.amount_in, snapshot_path=args.snapshot)
    return demo_stake(cfg, amount=args.amount, seconds=args.seconds, rate=args.rate, snapshot_path=args.snapshot)


if __name__ == "__main__":
    raise SystemExit(main())
