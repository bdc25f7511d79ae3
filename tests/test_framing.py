"""Tests for newline-delimited JSON framing."""

import json

from hjmcp.framing import LineFramer, decode_line, encode_message

MESSAGES = [
    {"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}},
    {"jsonrpc": "2.0", "id": 1, "result": {"tools": []}},
    {"jsonrpc": "2.0", "id": 2, "error": {"code": -32601, "message": "Unknown tool: bogus"}},
    {"jsonrpc": "2.0", "method": "notifications/initialized"},
    {"jsonrpc": "2.0", "id": 3, "result": {"text": "line one\nline two", "emoji": "📁 ünïcode"}},
]


class TestLineFramer:
    """Test reassembly of messages from chunks."""

    def test_two_chunks_split_mid_token(self):
        """A message split inside a key is reassembled from the next chunk."""
        framer = LineFramer()

        first = framer.feed('{"id":1,"result":1}\n{"i')
        second = framer.feed('d":2,"result":2}\n')

        assert [m["id"] for m in first] == [1]
        assert [m["id"] for m in second] == [2]

    def test_many_lines_in_one_chunk(self):
        """Every complete line in a chunk is emitted, in order."""
        framer = LineFramer()
        stream = "".join(encode_message(m) for m in MESSAGES)

        assert framer.feed(stream) == MESSAGES
        assert framer.pending == ""

    def test_every_split_point(self):
        """The output does not depend on where the chunk boundaries fall."""
        stream = "".join(encode_message(m) for m in MESSAGES)
        for split in range(len(stream) + 1):
            framer = LineFramer()
            received = framer.feed(stream[:split]) + framer.feed(stream[split:])
            assert received == MESSAGES, f"split at {split}"

    def test_one_character_at_a_time(self):
        """Single-character chunks still produce every message."""
        framer = LineFramer()
        received = []
        for char in "".join(encode_message(m) for m in MESSAGES):
            received.extend(framer.feed(char))

        assert received == MESSAGES

    def test_incomplete_line_stays_buffered(self):
        """Data without a newline waits for the rest of the line."""
        framer = LineFramer()

        assert framer.feed('{"id": 7, "result"') == []
        assert framer.pending == '{"id": 7, "result"'
        assert framer.feed(": true}\n") == [{"id": 7, "result": True}]

    def test_bytes_split_inside_multibyte_character(self):
        """UTF-8 sequences split across byte chunks are decoded intact."""
        framer = LineFramer()
        data = (json.dumps({"id": 1, "result": "📄"}, ensure_ascii=False) + "\n").encode("utf-8")
        cut = data.index("📄".encode("utf-8")) + 2

        assert framer.feed(data[:cut]) == []
        assert framer.feed(data[cut:]) == [{"id": 1, "result": "📄"}]

    def test_non_json_lines_are_dropped(self):
        """Diagnostic text on the stream is skipped without raising."""
        framer = LineFramer()

        received = framer.feed('debug: starting up\n{"id": 1, "result": {}}\n[1, 2]\n\n{"broken": \n')

        assert received == [{"id": 1, "result": {}}]
        assert framer.dropped_lines == 3

    def test_crlf_line_endings(self):
        """Carriage returns before the newline are ignored."""
        framer = LineFramer()

        assert framer.feed('{"id": 1, "result": 1}\r\n') == [{"id": 1, "result": 1}]


class TestSubscriptions:
    """Test the subscription tokens on the emission stream."""

    def test_subscribers_receive_messages(self):
        """Subscribed callbacks see every emitted message."""
        framer = LineFramer()
        seen = []
        framer.subscribe(seen.append)

        framer.feed('{"id": 1, "result": 1}\n{"id": 2, "result": 2}\n')

        assert [m["id"] for m in seen] == [1, 2]

    def test_unsubscribe_stops_delivery(self):
        """A revoked token receives nothing further."""
        framer = LineFramer()
        seen = []
        token = framer.subscribe(seen.append)

        framer.feed('{"id": 1, "result": 1}\n')
        framer.unsubscribe(token)
        framer.feed('{"id": 2, "result": 2}\n')

        assert [m["id"] for m in seen] == [1]

    def test_unsubscribe_unknown_token(self):
        """Revoking an unknown token is a no-op."""
        framer = LineFramer()
        framer.unsubscribe(12345)

    def test_tokens_are_unique(self):
        """Each subscription gets its own token."""
        framer = LineFramer()
        tokens = {framer.subscribe(lambda m: None) for _ in range(5)}

        assert len(tokens) == 5

    def test_failing_subscriber_does_not_block_others(self):
        """An exception in one callback does not stop delivery to the rest."""
        framer = LineFramer()
        seen = []

        def broken(message):
            raise RuntimeError("boom")

        framer.subscribe(broken)
        framer.subscribe(seen.append)

        assert framer.feed('{"id": 1, "result": 1}\n') == [{"id": 1, "result": 1}]
        assert seen == [{"id": 1, "result": 1}]

    def test_callback_may_unsubscribe_itself(self):
        """Unsubscribing during delivery is allowed."""
        framer = LineFramer()
        seen = []
        tokens = []

        def once(message):
            seen.append(message)
            framer.unsubscribe(tokens[0])

        tokens.append(framer.subscribe(once))
        framer.feed('{"id": 1, "result": 1}\n{"id": 2, "result": 2}\n')

        assert [m["id"] for m in seen] == [1]


class TestEncoding:
    """Test message serialization."""

    def test_encode_is_single_line(self):
        """Encoded messages contain exactly one trailing newline."""
        line = encode_message(MESSAGES[4])

        assert line.endswith("\n")
        assert line.count("\n") == 1

    def test_round_trip(self):
        """Decoding an encoded message gives back the same message."""
        for message in MESSAGES:
            assert decode_line(encode_message(message)) == message

    def test_decode_rejects_non_objects(self):
        """Only JSON objects count as messages."""
        assert decode_line("42") is None
        assert decode_line('"text"') is None
        assert decode_line("   ") is None
        assert decode_line("not json") is None
