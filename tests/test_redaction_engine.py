"""Tests for the deterministic redaction transform."""

import hashlib

import pytest

from zkredact.errors import InvalidIndexError, RedactionFailedError
from zkredact.redaction.engine import (
    REDACTION_MARKER,
    join_lines,
    line_count,
    parse_index_list,
    redact,
    split_lines,
)


def _sha(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def test_scenario_redacts_selected_lines(scenario_content: bytes):
    result = redact(scenario_content, {1, 3})

    assert result.redacted_content.split(b"\n") == [
        b"Public",
        b"***REDACTED***",
        b"Public",
        b"***REDACTED***",
        b"Public",
    ]
    assert result.redacted_indices == (1, 3)
    assert result.line_count == 5
    assert result.original_hash == _sha(scenario_content)
    assert result.redacted_hash == _sha(result.redacted_content)


def test_redaction_is_deterministic(scenario_content: bytes):
    first = redact(scenario_content, [3, 1])
    second = redact(scenario_content, [1, 3])

    assert first == second


def test_indices_are_sorted_and_deduplicated(scenario_content: bytes):
    result = redact(scenario_content, [3, 1, 3, 1])
    assert result.redacted_indices == (1, 3)


def test_empty_index_set_leaves_content_untouched(scenario_content: bytes):
    result = redact(scenario_content, [])

    assert result.redacted_content == scenario_content
    assert result.original_hash == result.redacted_hash
    assert result.redacted_indices == ()


def test_unselected_lines_pass_through_byte_for_byte():
    content = b"caf\xc3\xa9\n\n\xff\xfe raw\n  indented\t\r"
    result = redact(content, [1])

    original_lines = split_lines(content).lines
    redacted_lines = split_lines(result.redacted_content).lines
    for position, (before, after) in enumerate(zip(original_lines, redacted_lines, strict=True)):
        if position == 1:
            assert after == REDACTION_MARKER
        else:
            assert after == before


def test_out_of_range_index_is_rejected(scenario_content: bytes):
    with pytest.raises(InvalidIndexError) as excinfo:
        redact(scenario_content, [1, 10])

    assert excinfo.value.index == 10
    assert excinfo.value.line_count == 5
    assert isinstance(excinfo.value, RedactionFailedError)


def test_index_equal_to_line_count_is_rejected(scenario_content: bytes):
    with pytest.raises(InvalidIndexError):
        redact(scenario_content, [5])


def test_negative_index_is_rejected(scenario_content: bytes):
    with pytest.raises(InvalidIndexError):
        redact(scenario_content, [-1])


def test_trailing_newline_is_preserved_and_not_a_line():
    content = b"alpha\nbeta\n"

    assert line_count(content) == 2
    result = redact(content, [1])
    assert result.redacted_content == b"alpha\n***REDACTED***\n"

    with pytest.raises(InvalidIndexError):
        redact(content, [2])


def test_empty_content_has_no_lines():
    assert line_count(b"") == 0
    result = redact(b"", [])
    assert result.redacted_content == b""
    assert result.original_hash == _sha(b"")

    with pytest.raises(InvalidIndexError):
        redact(b"", [0])


def test_text_input_is_encoded_as_utf8():
    text = "line one\nzweite Zeile ü"
    assert redact(text, [0]) == redact(text.encode("utf-8"), [0])


@pytest.mark.parametrize(
    "content",
    [b"", b"\n", b"a", b"a\n", b"a\n\n", b"\n\nb", b"x\ny\nz"],
)
def test_split_and_join_reconstruct_original(content: bytes):
    assert join_lines(split_lines(content)) == content


def test_marker_line_in_original_is_not_treated_as_redacted():
    content = b"***REDACTED***\nsecret"
    result = redact(content, [1])

    assert result.redacted_indices == (1,)
    assert result.redacted_content == b"***REDACTED***\n***REDACTED***"


def test_parse_index_list():
    assert parse_index_list("1,3") == [1, 3]
    assert parse_index_list(" 4 , 0 ,,") == [4, 0]
    assert parse_index_list(None) == []
    assert parse_index_list("") == []


@pytest.mark.parametrize("raw", ["1,a", "1.5", "-2", "0x1"])
def test_parse_index_list_rejects_garbage(raw: str):
    with pytest.raises(InvalidIndexError):
        parse_index_list(raw)
