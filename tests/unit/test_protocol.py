"""Unit tests for the envelope codec."""

from __future__ import annotations

import json

import pytest

from io_relay.host import Contact
from io_relay.protocol import RAW, Envelope, InboundName, OutboundName, decode, encode


class TestEncode:
    """Tests for encode()."""

    def test_encode_name_and_payload(self) -> None:
        """Envelope serializes to a name/payload object."""
        data = json.loads(encode(Envelope(name="login", payload={"id": "u1"})))

        assert data == {"name": "login", "payload": {"id": "u1"}}

    def test_encode_null_payload(self) -> None:
        data = json.loads(encode(Envelope(name="sys")))

        assert data == {"name": "sys", "payload": None}

    def test_encode_exception_payload(self) -> None:
        """Exceptions are stringified rather than rejected."""
        data = json.loads(encode(Envelope(name="error", payload=RuntimeError("boom"))))

        assert data["payload"] == "boom"

    def test_encode_model_payload(self) -> None:
        data = json.loads(encode(Envelope(name="scan", payload=Contact(id="u1", name="Ann"))))

        assert data["payload"] == {"id": "u1", "name": "Ann"}

    def test_to_json_matches_encode(self) -> None:
        envelope = Envelope(name="heartbeat", payload=3)

        assert envelope.to_json() == encode(envelope)


class TestDecode:
    """Tests for decode()."""

    @pytest.mark.parametrize(
        "envelope",
        [
            Envelope(name="login", payload={"id": "u1", "tags": ["a", "b"]}),
            Envelope(name="heartbeat", payload="beat"),
            Envelope(name="update", payload={}),
            Envelope(name="sys", payload=None),
            Envelope(name="custom", payload=[1, 2.5, True]),
        ],
    )
    def test_round_trip(self, envelope: Envelope) -> None:
        """decode(encode(e)) == e for serializable payloads."""
        assert decode(encode(envelope)) == envelope

    def test_non_json_becomes_raw(self) -> None:
        assert decode("hello") == Envelope(name=RAW, payload="hello")

    def test_non_object_json_becomes_raw(self) -> None:
        assert decode("[1, 2]") == Envelope(name=RAW, payload="[1, 2]")

    def test_missing_fields_are_none(self) -> None:
        assert decode("{}") == Envelope(name=None, payload=None)
        assert decode('{"name": "sys"}') == Envelope(name="sys", payload=None)

    def test_deeply_nested_frame_becomes_raw(self) -> None:
        """Frames too deep for the JSON parser degrade to raw."""
        frame = "[" * 100000

        assert decode(frame) == Envelope(name=RAW, payload=frame)

    def test_bytes_frame(self) -> None:
        envelope = decode(b'{"name": "reset", "payload": "now"}')

        assert envelope == Envelope(name="reset", payload="now")

    def test_from_json_never_raises(self) -> None:
        assert Envelope.from_json("{not json").name == RAW


class TestEnvelope:
    """Tests for the Envelope type."""

    def test_is_immutable(self) -> None:
        envelope = Envelope(name="login")

        with pytest.raises(AttributeError):
            envelope.name = "logout"  # type: ignore[misc]

    def test_reserved_names(self) -> None:
        assert [n.value for n in InboundName] == ["botie", "reset", "update", "sys"]
        assert [n.value for n in OutboundName] == [
            "scan",
            "login",
            "logout",
            "error",
            "heartbeat",
        ]
