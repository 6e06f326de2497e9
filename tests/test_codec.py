"""
Tests for the JSON codec in redisq.codec.
"""

import pytest

from redisq.codec import Decoded, decode, encode, try_decode


@pytest.mark.parametrize(
    "value",
    [
        {"str": "QUX", "num": 123, "bool": True},
        ["BAZ", 123, True],
        123,
        1.5,
        True,
        None,
    ],
)
def test_decode_recovers_encoded_json_values(value):
    """Test that decode(encode(x)) recovers JSON-representable values."""
    [encoded] = encode([value])

    assert isinstance(encoded, str)
    assert decode(encoded) == value


def test_encode_leaves_strings_unquoted():
    """Test that strings are considered wire-ready and never JSON-quoted."""
    assert encode(["FOO", "", '{"a": 1}']) == ["FOO", "", '{"a": 1}']


def test_encode_preserves_order_and_length():
    """Test that encode maps arguments positionally."""
    assert encode(("k", {"a": 1}, [1, 2], 7)) == ["k", '{"a": 1}', "[1, 2]", "7"]


def test_encode_passes_through_unserializable_values():
    """Test that values json cannot serialize are passed through unchanged."""
    marker = object()
    circular: list = []
    circular.append(circular)

    result = encode([marker, circular, b"raw"])

    assert result[0] is marker
    assert result[1] is circular
    assert result[2] == b"raw"


def test_decode_passes_through_plain_text():
    """Test that text which is not JSON is returned unchanged."""
    assert decode("FOO") == "FOO"
    assert decode("BAZ,123,true") == "BAZ,123,true"
    assert decode("") == ""


def test_decode_passes_through_non_string_scalars():
    """Test that replies json.loads rejects come back as they were."""
    assert decode(None) is None
    assert decode(3) == 3
    assert decode({"already": "decoded"}) == {"already": "decoded"}


def test_decode_recurses_into_sequences():
    """Test that batch replies are decoded element by element."""
    replies = ["OK", 3, None, ["FOO", '["BAZ", 123, true]', '{"num": 1}']]

    assert decode(replies) == ["OK", 3, None, ["FOO", ["BAZ", 123, True], {"num": 1}]]


def test_decode_returns_a_new_list_for_tuples():
    """Test that tuple replies are decoded into a list."""
    assert decode(("1", "x")) == [1, "x"]


def test_decode_is_lossy_for_numeric_strings():
    """Test that numeric-looking text is decoded into a number."""
    assert decode("123") == 123


def test_try_decode_reports_the_outcome():
    """Test that try_decode tells decoded values apart from pass-through."""
    assert try_decode('{"a": 1}') == Decoded(value={"a": 1}, decoded=True)
    assert try_decode("FOO") == Decoded(value="FOO", decoded=False)
    assert try_decode(None) == Decoded(value=None, decoded=False)
    assert try_decode(["1"]) == Decoded(value=[1], decoded=True)


def test_encode_passes_through_values_nested_too_deeply():
    """Test that serializing a deeply nested value never raises."""
    nested: list = []
    for _ in range(100000):
        nested = [nested]

    [result] = encode([nested])

    assert result is nested


def test_decode_passes_through_text_nested_too_deeply():
    """Test that parsing deeply nested JSON text never raises."""
    text = "[" * 100000

    assert decode(text) == text
    assert try_decode(text) == Decoded(value=text, decoded=False)
