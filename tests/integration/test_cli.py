# [TESTER] v1

from __future__ import annotations

import pytest

from stakeswap.integration import snapshot
from stakeswap.integration.cli import main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("STAKESWAP_FEE_BPS", "STAKESWAP_OPERATOR", "STAKESWAP_INITIAL_REWARD_RATE"):
        monkeypatch.delenv(name, raising=False)


def test_demo_swap(capsys) -> None:
    assert main(["demo-swap"]) == 0
    out = capsys.readouterr().out
    assert "[stakeswap] shares minted=1000" in out
    assert "[stakeswap] swap 100 TKA -> 90 TKB" in out
    assert "TKA=1100 TKB=910" in out
    assert "[stakeswap] OK: swap executed" in out


def test_demo_stake(capsys) -> None:
    assert main(["demo-stake"]) == 0
    out = capsys.readouterr().out
    assert "[stakeswap] earned after 3600s: 3600" in out
    assert "[stakeswap] reward paid=3600 alice RWD=3600" in out


def test_fee_from_config_file(tmp_path, capsys) -> None:
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("fee_bps: 0\n", encoding="utf-8")
    assert main(["--config", str(cfg), "demo-swap"]) == 0
    assert "swap 100 TKA -> 90 TKB" in capsys.readouterr().out


def test_swap_failure_is_reported(capsys) -> None:
    assert main(["demo-swap", "--amount-in", "20000"]) == 1
    assert "FAIL (swap): InsufficientBalance" in capsys.readouterr().out


def test_snapshot_written(tmp_path, capsys) -> None:
    path = tmp_path / "snap.json"
    assert main(["--snapshot", str(path), "demo-stake", "--rate", "2", "--seconds", "10"]) == 0
    out = capsys.readouterr().out
    snap = snapshot.load(path)
    assert snap["router"] is None
    assert snap["ledger"]["state"]["global"]["reward_rate"] == 2
    assert f"commitment={snapshot.snapshot_commitment(snap)}" in out


def test_rejects_non_positive_arguments() -> None:
    with pytest.raises(SystemExit):
        main(["demo-stake", "--seconds", "0"])
