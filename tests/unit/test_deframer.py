from __future__ import annotations

import pytest

from streamrelay.relay.deframer import Deframer, deframe

_STREAM = (
    'data: {"id":"c1","choices":[{"delta":{"content":"He said \\"hi {there}\\""}}]}\n\n'
    ": keep-alive\n\n"
    'data: {"id":"c2","choices":[{"delta":{"content":"C:\\\\"},"finish_reason":null}]}\n\n'
    'data: {"id":"c3","choices":[{"delta":{},"finish_reason":"stop"}]}\n\n'
    "data: [DONE]\n\n"
)


def _feed_all(fragments: list[str]) -> tuple[list[dict], str]:
    deframer = Deframer()
    objects: list[dict] = []
    for fragment in fragments:
        objects.extend(deframer.feed(fragment))
    return objects, deframer.residue


def test_deframe_single_complete_object() -> None:
    objects, residue = deframe("", '{"a":1}')
    assert objects == [{"a": 1}]
    assert residue == ""


def test_deframe_reassembles_object_split_across_fragments() -> None:
    objects, residue = deframe("", '{"choices":[{"delta":{"content":"Hi"}}')
    assert objects == []
    assert residue == '{"choices":[{"delta":{"content":"Hi"}}'

    objects, residue = deframe(residue, "]}")
    assert objects == [{"choices": [{"delta": {"content": "Hi"}}]}]
    assert residue == ""


def test_deframe_yields_several_objects_and_keeps_trailing_partial() -> None:
    objects, residue = deframe("", '{"a":1}{"b":2} noise {"c":')
    assert objects == [{"a": 1}, {"b": 2}]
    assert residue == '{"c":'


def test_deframe_skips_sse_noise() -> None:
    objects, residue = deframe("", 'data: {"a":1}\n\ndata: [DONE]\n\n')
    assert objects == [{"a": 1}]
    assert residue == ""


def test_deframe_noise_only_leaves_no_residue() -> None:
    assert deframe("", "event: ping\n\n") == ([], "")


def test_escaped_quote_does_not_end_string() -> None:
    objects, _ = deframe("", '{"a":"x\\"}y"}')
    assert objects == [{"a": 'x"}y'}]


def test_escaped_backslash_before_quote_ends_string() -> None:
    objects, residue = deframe("", '{"a":"x\\\\"}{"b":1}')
    assert objects == [{"a": "x\\"}, {"b": 1}]
    assert residue == ""


def test_braces_inside_strings_are_ignored() -> None:
    objects, _ = deframe("", '{"a":"}{","b":"{{"}')
    assert objects == [{"a": "}{", "b": "{{"}]


def test_stray_closing_brace_at_top_level_is_ignored() -> None:
    objects, residue = deframe("", '}} {"a":1}')
    assert objects == [{"a": 1}]
    assert residue == ""


def test_nested_objects_emit_only_the_outermost() -> None:
    objects, _ = deframe("", '{"a":{"b":{"c":1}}}')
    assert objects == [{"a": {"b": {"c": 1}}}]


def test_undecodable_candidate_is_dropped_and_counted() -> None:
    deframer = Deframer()
    objects = deframer.feed('{not json} {"a":1}')
    assert objects == [{"a": 1}]
    assert deframer.discarded == 1
    assert deframer.residue == ""


def test_residue_over_cap_is_dropped() -> None:
    deframer = Deframer(max_residue_chars=8)
    assert deframer.feed('"' + "x" * 20) == []
    assert deframer.residue == ""
    assert deframer.discarded == 1


def test_residue_within_cap_is_kept() -> None:
    deframer = Deframer(max_residue_chars=64)
    assert deframer.feed('{"a":') == []
    assert deframer.residue == '{"a":'
    assert deframer.feed("1}") == [{"a": 1}]


def test_whole_stream_extracts_every_chunk() -> None:
    objects, residue = _feed_all([_STREAM])
    assert [obj["id"] for obj in objects] == ["c1", "c2", "c3"]
    assert objects[0]["choices"][0]["delta"]["content"] == 'He said "hi {there}"'
    assert objects[1]["choices"][0]["delta"]["content"] == "C:\\"
    assert residue == ""


@pytest.mark.parametrize("split_at", range(1, len(_STREAM)))
def test_output_independent_of_split_point(split_at: int) -> None:
    expected, _ = _feed_all([_STREAM])
    objects, residue = _feed_all([_STREAM[:split_at], _STREAM[split_at:]])
    assert objects == expected
    assert residue == ""


def test_output_independent_of_single_character_fragments() -> None:
    expected, _ = _feed_all([_STREAM])
    objects, residue = _feed_all(list(_STREAM))
    assert objects == expected
    assert residue == ""
