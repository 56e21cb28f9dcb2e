"""Tests for SSE line splitting and frame classification."""

import json

from studybuddy.client.sse_parser import FrameKind, SSEFrameParser, extract_delta, iter_frames

from .helpers import sse_line, sse_stream


def deltas(frames):
    return [f.content for f in frames if f.kind is FrameKind.DELTA]


def test_spec_example_chunks():
    parser = SSEFrameParser()
    frames = []
    frames += parser.feed('data: {"choices":[{"delta":{"content":"Hel')
    assert frames == []
    frames += parser.feed('lo"}}]}\n')
    frames += parser.feed('data: {"choices":[{"delta":{"content":" world"}}]}\ndata: [DONE]\n')

    assert deltas(frames) == ["Hello", " world"]
    assert frames[-1].kind is FrameKind.DONE
    assert parser.done


def test_split_json_recovered_exactly_once_at_every_offset():
    line = sse_line("exactly once")
    for offset in range(1, len(line)):
        parser = SSEFrameParser()
        frames = parser.feed(line[:offset]) + parser.feed(line[offset:]) + parser.finish()
        assert deltas(frames) == ["exactly once"], offset


def test_payload_broken_by_raw_newline_is_rebuffered():
    parser = SSEFrameParser()
    frames = parser.feed('data: {"choices":[{"delta":{"content":"line one\n')
    assert frames == []
    assert parser.pending_payload is not None
    assert parser.unconsumed.startswith("data: {")

    frames = parser.feed('line two"}}]}\n')
    assert deltas(frames) == ["line one\nline two"]
    assert parser.pending_payload is None


def test_done_halts_extraction():
    parser = SSEFrameParser()
    frames = parser.feed(sse_stream("a", "b") + sse_line("after"))
    assert deltas(frames) == ["a", "b"]
    assert parser.feed(sse_line("later")) == []
    assert parser.finish() == []


def test_comments_and_blank_lines_do_not_change_output():
    plain = sse_stream("one", "two", "three")
    noisy = ": keep-alive\n\n" + sse_line("one") + "\n: ping\n\r\n" + sse_line("two") + "   \n" + \
        sse_line("three") + ": bye\ndata: [DONE]\n"
    assert deltas(SSEFrameParser().feed(plain)) == deltas(SSEFrameParser().feed(noisy))


def test_non_data_lines_are_ignored():
    text = "event: message\n" + sse_line("kept") + "id: 7\nretry: 1000\ndata:no-space\n" + sse_line("also kept")
    assert deltas(SSEFrameParser().feed(text)) == ["kept", "also kept"]


def test_crlf_line_endings():
    text = sse_line("windows").replace("\n", "\r\n") + "data: [DONE]\r\n"
    frames = SSEFrameParser().feed(text)
    assert deltas(frames) == ["windows"]
    assert frames[-1].is_done


def test_bad_line_does_not_swallow_following_valid_line():
    text = "data: {not json}\n" + sse_line("survives")
    parser = SSEFrameParser()
    assert deltas(parser.feed(text)) == ["survives"]
    assert parser.dropped_frames == 1


def test_final_line_without_newline_is_flushed():
    parser = SSEFrameParser()
    frames = parser.feed(sse_line("first") + sse_line("last").rstrip("\n"))
    assert deltas(frames) == ["first"]
    assert deltas(parser.finish()) == ["last"]


def test_unparsable_tail_is_ignored_at_end():
    parser = SSEFrameParser()
    parser.feed(sse_line("ok") + 'data: {"choices":[{"delta":')
    assert parser.finish() == []
    assert parser.pending_buffer == ""
    assert parser.pending_payload is None


def test_done_in_unterminated_tail():
    parser = SSEFrameParser()
    parser.feed(sse_line("x") + "data: [DONE]")
    frames = parser.finish()
    assert [f.kind for f in frames] == [FrameKind.DONE]


def test_missing_or_empty_content_contributes_nothing():
    parser = SSEFrameParser()
    frames = parser.feed(sse_line(None) + sse_line("") + 'data: {"choices": []}\ndata: 42\n')
    assert deltas(frames) == ["", "", "", ""]


def test_extract_delta_shapes():
    assert extract_delta({"choices": [{"delta": {"content": "hi"}}]}) == "hi"
    assert extract_delta({"choices": [{"delta": {"content": None}}]}) == ""
    assert extract_delta({"choices": [{"delta": {"role": "assistant"}}]}) == ""
    assert extract_delta({"error": "boom"}) == ""
    assert extract_delta(["not", "a", "dict"]) == ""


def test_iter_frames_stops_after_done():
    pieces = [sse_line("a"), "data: [DONE]\n", sse_line("ignored")]
    frames = list(iter_frames(pieces))
    assert deltas(frames) == ["a"]
    assert frames[-1].is_done


def test_frame_payload_is_parsed_json():
    line = sse_line("x", finish_reason="stop")
    frame = SSEFrameParser().feed(line)[0]
    assert frame.payload == json.loads(line[len("data: "):])
