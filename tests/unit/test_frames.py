# pylint: disable=missing-module-docstring,missing-function-docstring

import json

import pytest

from protocol.frames import (
    FrameClass,
    FrameKind,
    classify_binary,
    classify_frame,
    classify_text,
)


# ---------------------------------------------------------------------
# Binary frames
# ---------------------------------------------------------------------

def test_empty_binary_is_ignored():
    frame = classify_binary(b"")

    assert frame.frame_class is FrameClass.EMPTY_BINARY
    assert frame.tag is None


@pytest.mark.parametrize(
    "tag, expected",
    [
        (1, FrameClass.FFT),
        (2, FrameClass.AUDIO),
        (4, FrameClass.HD_AUDIO),
    ],
)
def test_known_tags(tag, expected):
    frame = classify_binary(bytes([tag]) + b"\x00" * 16)

    assert frame.kind is FrameKind.BINARY
    assert frame.frame_class is expected
    assert frame.tag == tag
    assert frame.payload_len == 16


def test_every_other_tag_is_unhandled():
    known = {1, 2, 4}

    for tag in range(256):
        frame = classify_binary(bytes([tag, 0xFF]))
        if tag in known:
            assert frame.frame_class is not FrameClass.UNHANDLED_BINARY
        else:
            assert frame.frame_class is FrameClass.UNHANDLED_BINARY


def test_tag_only_frame_has_empty_payload():
    frame = classify_binary(b"\x02")

    assert frame.frame_class is FrameClass.AUDIO
    assert frame.payload_len == 0


# ---------------------------------------------------------------------
# Text frames
# ---------------------------------------------------------------------

def test_smeter_with_value():
    frame = classify_text(json.dumps({"type": "smeter", "value": -73}))

    assert frame.frame_class is FrameClass.SMETER
    assert frame.value == -73


def test_smeter_with_null_value_still_counts():
    frame = classify_text('{"type": "smeter", "value": null}')

    assert frame.frame_class is FrameClass.SMETER
    assert frame.value is None


def test_smeter_without_value_is_plain_status():
    frame = classify_text(json.dumps({"type": "smeter"}))

    assert frame.frame_class is FrameClass.STATUS_DOCUMENT


def test_other_document_type_is_plain_status():
    frame = classify_text(json.dumps({"type": "config", "value": 1}))

    assert frame.frame_class is FrameClass.STATUS_DOCUMENT
    assert frame.doc_type == "config"


def test_handshake_echo_is_not_a_parse_error():
    line = "CLIENT DE SERVER server=openwebrx version=1.2.2"

    frame = classify_text(line)

    assert frame.frame_class is FrameClass.HANDSHAKE_ECHO
    assert frame.text == line
    assert frame.error is None


def test_handshake_echo_with_trailing_document():
    frame = classify_text('CLIENT DE SERVER {"type": "smeter", "value": 1}')

    assert frame.frame_class is FrameClass.HANDSHAKE_ECHO


def test_garbage_text_is_a_parse_error():
    frame = classify_text("not json at all")

    assert frame.frame_class is FrameClass.PARSE_ERROR
    assert frame.text == "not json at all"
    assert frame.error


def test_json_that_is_not_an_object_is_a_parse_error():
    frame = classify_text("[1, 2, 3]")

    assert frame.frame_class is FrameClass.PARSE_ERROR
    assert "list" in frame.error


def test_json_null_is_an_empty_status_document():
    frame = classify_text("null")

    assert frame.frame_class is FrameClass.STATUS_DOCUMENT
    assert frame.doc_type is None
    assert frame.error is None


# ---------------------------------------------------------------------
# Frame kind dispatch
# ---------------------------------------------------------------------

def test_classify_frame_routes_by_python_type():
    assert classify_frame("CLIENT DE SERVER x").kind is FrameKind.TEXT
    assert classify_frame(b"\x01").kind is FrameKind.BINARY
    assert classify_frame(bytearray(b"\x02")).frame_class is FrameClass.AUDIO


def test_unknown_frame_type():
    frame = classify_frame(12345)

    assert frame.kind is FrameKind.UNKNOWN
    assert frame.frame_class is FrameClass.UNKNOWN_FRAME
