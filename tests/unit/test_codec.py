#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Wire format unit tests
#
import io
import json
import socket
import struct

import pytest
from pydantic import ValidationError

from domain.message import Message, MessageType
from domain.user import User
from protocol.codec import (
    MAX_FRAME_SIZE,
    MalformedMessageError,
    MessageChannel,
    ProtocolError,
    decode_message,
    encode_message,
    read_frame,
)
from protocol.models import UserPayload


def _frame(document) -> bytes:
    body = json.dumps(document).encode("utf-8")
    return struct.pack(">I", len(body)) + body


class TestUserPayload:
    def test_wire_form_drops_unset_fields(self):
        wire = UserPayload.from_user(User(login="ana", zip_code="28001")).to_wire()

        assert wire == {"login": "ana", "zip": "28001", "active": True}

    def test_to_user(self):
        payload = UserPayload.model_validate({"login": "ana", "zip": "28001", "active": False, "user_id": 3})

        assert payload.to_user() == User(login="ana", zip_code="28001", active=False, user_id=3)

    @pytest.mark.parametrize("data", [
        None,
        "ana",
        {"login": 1},
        {"active": 1},
        {"user_id": "3"},
        {"user_id": True},
    ])
    def test_rejects_bad_shapes(self, data):
        with pytest.raises(ValidationError):
            UserPayload.model_validate(data)


class TestEncode:
    def test_frame_layout(self):
        frame = encode_message(Message(MessageType.COUNTRIES_REQUEST))

        (length,) = struct.unpack(">I", frame[:4])
        assert length == len(frame) - 4
        assert json.loads(frame[4:]) == {
            "type": "COUNTRIES_REQUEST", "payload_kind": "none", "payload": None,
        }

    def test_user_payload_uses_wire_names(self):
        user = User(login="ana", password="pw", zip_code="28001")

        document = json.loads(encode_message(Message(MessageType.SIGN_UP_REQUEST, user))[4:])

        assert document["payload_kind"] == "user"
        assert document["payload"] == {"login": "ana", "password": "pw", "zip": "28001", "active": True}

    def test_strings_and_error_payloads(self):
        strings = json.loads(encode_message(Message(MessageType.COUNTRIES_OK, ["Madrid", "Galicia"]))[4:])
        error = json.loads(encode_message(Message(MessageType.SIGNIN_ERROR, "invalid"))[4:])

        assert (strings["payload_kind"], strings["payload"]) == ("strings", ["Madrid", "Galicia"])
        assert (error["payload_kind"], error["payload"]) == ("error", "invalid")

    def test_oversized_message_is_refused(self):
        with pytest.raises(ProtocolError):
            encode_message(Message(MessageType.BAD_RESPONSE, "x" * (MAX_FRAME_SIZE + 1)))


class TestDecode:
    def test_user_round_trip_keeps_non_ascii(self):
        user = User(login="josé", password="contraseña", name="José Núñez", city="A Coruña", user_id=7)
        message = Message(MessageType.GET_OK, user)

        assert decode_message(encode_message(message)[4:]) == message

    def test_strings_become_tuple(self):
        message = decode_message(encode_message(Message(MessageType.COUNTRIES_OK, ["a", "b"]))[4:])

        assert message.strings == ("a", "b")

    def test_missing_payload_kind_means_no_payload(self):
        message = decode_message(b'{"type": "COUNTRIES_REQUEST", "payload": {"ignored": true}}')

        assert message == Message(MessageType.COUNTRIES_REQUEST)

    @pytest.mark.parametrize("body", [
        b"\xff\xfe", b"not json", b"[1, 2]", b'{"payload": null}', b'{"type": 5}',
    ])
    def test_unreadable_envelope_is_protocol_error(self, body):
        with pytest.raises(ProtocolError) as info:
            decode_message(body)
        assert not isinstance(info.value, MalformedMessageError)

    @pytest.mark.parametrize("document", [
        {"type": "DROP_TABLES", "payload_kind": "none"},
        {"type": "SIGN_IN_REQUEST", "payload_kind": "blob", "payload": "x"},
        {"type": "SIGN_IN_REQUEST", "payload_kind": "user", "payload": ["ana"]},
        {"type": "SIGN_IN_REQUEST", "payload_kind": "user", "payload": {"login": 5}},
        {"type": "SIGN_IN_REQUEST", "payload_kind": "user", "payload": {"login": "a", "active": "yes"}},
        {"type": "COUNTRIES_OK", "payload_kind": "strings", "payload": ["a", 1]},
        {"type": "BAD_RESPONSE", "payload_kind": "error", "payload": 42},
    ])
    def test_readable_but_invalid_envelope_is_malformed(self, document):
        with pytest.raises(MalformedMessageError):
            decode_message(json.dumps(document).encode("utf-8"))


class TestReadFrame:
    def test_reads_one_frame(self):
        stream = io.BytesIO(_frame({"type": "GET_USER", "payload_kind": "user", "payload": {"login": "a"}}))

        message = read_frame(stream)

        assert message.type is MessageType.GET_USER
        assert message.user == User(login="a")

    def test_truncated_header(self):
        with pytest.raises(ProtocolError, match="0 of 4"):
            read_frame(io.BytesIO(b""))

    def test_truncated_body(self):
        frame = _frame({"type": "GET_USER"})

        with pytest.raises(ProtocolError):
            read_frame(io.BytesIO(frame[:-3]))

    def test_declared_length_over_limit(self):
        with pytest.raises(ProtocolError, match="too large"):
            read_frame(io.BytesIO(struct.pack(">I", MAX_FRAME_SIZE + 1) + b"{}"))


class TestMessageChannel:
    def test_exchange_over_socket_pair(self):
        left, right = socket.socketpair()
        with MessageChannel(left) as client, MessageChannel(right) as server:
            client.write_message(Message(MessageType.SIGN_IN_REQUEST, User(login="a", password="b")))
            request = server.read_message()
            server.write_message(Message(MessageType.LOGIN_OK, User(name="A")))
            response = client.read_message()

        assert request.user == User(login="a", password="b")
        assert response.type is MessageType.LOGIN_OK
        assert response.user.name == "A"

    def test_peer_closing_early_is_protocol_error(self):
        left, right = socket.socketpair()
        left.close()
        with MessageChannel(right) as channel:
            with pytest.raises(ProtocolError):
                channel.read_message()
