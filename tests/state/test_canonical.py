# [TESTER] v1

from __future__ import annotations

import pytest

from stakeswap.state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


def test_canonical_json_is_key_order_independent() -> None:
    assert canonical_json_bytes({"b": 1, "a": [1, 2]}) == canonical_json_bytes({"a": [1, 2], "b": 1})
    assert canonical_json_bytes({"b": 1, "a": 2}) == b'{"a":2,"b":1}'


def test_canonical_json_rejects_floats_and_surrogates() -> None:
    with pytest.raises(TypeError, match="floats"):
        canonical_json_bytes({"x": 1.0})
    with pytest.raises(TypeError, match="surrogate"):
        canonical_json_bytes({"x": "\ud800"})
    with pytest.raises(TypeError, match="keys"):
        canonical_json_bytes({1: 2})


def test_big_ints_survive() -> None:
    assert canonical_json_bytes([36 * 10**36]) == b"[" + str(36 * 10**36).encode() + b"]"


def test_domain_separator() -> None:
    assert domain_sep_bytes("snapshot", 1) == b"stakeswap:snapshot:v1\x00"
    with pytest.raises(ValueError):
        domain_sep_bytes("")
    with pytest.raises(ValueError):
        domain_sep_bytes("a\x00b")
    with pytest.raises(ValueError):
        domain_sep_bytes("snapshot", 0)


def test_sha256_hex_prefix() -> None:
    digest = sha256_hex(b"")
    assert digest == "0xe3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
