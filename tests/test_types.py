"""Tests for Command parsing and Response serialization."""

import json

import pytest

from etbridge.bridge.types import Command, CommandError, CommandType, Response, describe_type


class TestCommand:
    def test_from_json(self):
        command = Command.from_json(b'{"id": 7, "type": 0, "address": 100}')
        assert command.id == 7
        assert command.type == 0
        assert command.command_type is CommandType.READ_BYTE
        assert command.address == 100
        assert command.value is None
        assert command.message is None

    def test_unknown_type_is_kept(self):
        command = Command.from_json(b'{"id": 3, "type": 119}')
        assert command.type == 0x77
        assert command.command_type is None

    def test_all_fields(self):
        data = {
            "id": 1,
            "type": 0x1F,
            "domain": "RDRAM",
            "address": 16,
            "value": 2,
            "size": 4,
            "message": "m",
            "block": "AAE=",
        }
        command = Command.from_dict(data)
        assert command.domain == "RDRAM"
        assert command.size == 4
        assert command.block == "AAE="

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"\xff\xfe",
            b"[1, 2, 3]",
            b'{"id": 1}',
            b'{"id": 1, "type": null}',
            b'{"id": 1, "type": "ReadByte"}',
            b'{"id": 1, "type": true}',
            b'{"id": 1, "type": 0, "address": "0x10"}',
        ],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(CommandError):
            Command.from_json(payload)


class TestResponse:
    def test_echo_copies_command_fields(self):
        command = Command(type=0x10, id=5, domain="RDRAM", address=1, value=2, size=1)
        response = Response.echo(command, stamp=10)
        assert response.to_dict() == {
            "id": 5,
            "stamp": 10,
            "type": 0x10,
            "message": "",
            "address": 1,
            "size": 1,
            "domain": "RDRAM",
            "value": 2,
        }

    def test_absent_fields_are_omitted(self):
        response = Response(id=1, stamp=2, type=0xFF)
        assert response.to_dict() == {"id": 1, "stamp": 2, "type": 0xFF, "message": ""}

    def test_block_included_when_set(self):
        response = Response(id=1, stamp=2, type=0x0F, block="AQID")
        assert response.to_dict()["block"] == "AQID"

    def test_to_json_is_compact_utf8(self):
        response = Response(id=1, stamp=2, type=0xF0, message="é")
        data = response.to_json()
        assert b" " not in data
        assert json.loads(data.decode("utf-8"))["message"] == "é"


def test_describe_type():
    assert describe_type(0x0F) == "READ_BLOCK"
    assert describe_type(0x77) == "0x77"
