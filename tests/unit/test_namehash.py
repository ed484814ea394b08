import pytest

from surecast.errors import InvalidNameError
from surecast.namehash import ZERO_NODE, name_hash, name_hash_hex, normalize_name


def test_empty_name_is_zero_node():
    assert name_hash("") == ZERO_NODE
    assert len(name_hash("")) == 32


def test_known_vectors():
    assert (
        name_hash_hex("eth")
        == "0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"
    )
    assert (
        name_hash_hex("foo.eth")
        == "0xde9b09fd7c5f901e23a3f19fecc54828e9c848539801e86591bd9801b019f84f"
    )


def test_deterministic():
    assert name_hash("alice.eth") == name_hash("alice.eth")


def test_label_order_matters():
    assert name_hash("a.b") != name_hash("b.a")


def test_normalization_lowercases_and_strips():
    assert normalize_name("  Foo.ETH ") == "foo.eth"
    assert name_hash("Foo.ETH") == name_hash("foo.eth")


def test_non_ascii_names_rejected():
    with pytest.raises(InvalidNameError):
        name_hash("café.eth")


def test_empty_label_rejected():
    with pytest.raises(InvalidNameError):
        name_hash("foo..eth")
