import asyncio

import pytest

from shared.protocol import (
    AllocationError,
    ControlToken,
    ErrorCode,
    FramingError,
    HEADER_SIZE,
    NetworkError,
    allocate_payload,
    decode_header,
    encode_header,
    make_payload,
    read_header,
    read_payload,
)
from shared.protocol.commands import is_acknowledgement, is_control_token


def _reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


async def _header_from(data: bytes):
    return await read_header(_reader(data))


async def _payload_from(data: bytes, size: int):
    return await read_payload(_reader(data), size)


@pytest.mark.parametrize("size", [0, 1, 128, 65536000, 99_999_999])
def test_length_header_roundtrip(size):
    raw = encode_header(size)
    assert len(raw) == HEADER_SIZE
    assert decode_header(raw) == size


def test_length_header_is_space_padded_ascii():
    assert encode_header(128) == b"128     "
    assert encode_header(0) == b"0       "


@pytest.mark.parametrize("token", list(ControlToken))
def test_control_tokens_roundtrip(token):
    raw = encode_header(token)
    assert raw == token.value.encode("ascii").ljust(HEADER_SIZE, b" ")
    assert decode_header(raw) is token


def test_token_given_as_text():
    assert encode_header("OK") == b"OK      "


def test_decode_accepts_nul_and_leading_padding():
    assert decode_header(b"128\x00\x00\x00\x00\x00") == 128
    assert decode_header(b"CLOSE\x00\x00\x00") is ControlToken.CLOSE
    assert decode_header(b"   42   ") == 42


@pytest.mark.parametrize("value", [-1, 100_000_000])
def test_encode_rejects_out_of_range_lengths(value):
    with pytest.raises(FramingError):
        encode_header(value)


def test_encode_rejects_unknown_token():
    with pytest.raises(FramingError):
        encode_header("HELLO")


@pytest.mark.parametrize(
    "raw",
    [b"abcdefgh", b"        ", b"-5      ", b"+5      ", b"1_000   ", b"12 34   ", b"\xff\xfe1234  ", b"ok      "],
)
def test_decode_rejects_malformed_headers(raw):
    with pytest.raises(FramingError) as info:
        decode_header(raw)
    assert info.value.code is ErrorCode.MALFORMED_HEADER


@pytest.mark.parametrize("raw", [b"", b"128", b"128      "])
def test_decode_requires_exactly_eight_bytes(raw):
    with pytest.raises(FramingError):
        decode_header(raw)


def test_token_helpers():
    assert is_control_token("CLOSE")
    assert not is_control_token("close")
    assert is_acknowledgement(ControlToken.OK)
    assert is_acknowledgement("ERR")
    assert not is_acknowledgement(ControlToken.CLOSE)


def test_make_payload_is_deterministic():
    assert make_payload(4) == b"aaaa"
    assert make_payload(0) == b""


def test_allocate_payload_enforces_limit():
    assert len(allocate_payload(16, limit=16)) == 16
    with pytest.raises(AllocationError) as info:
        allocate_payload(17, limit=16)
    assert info.value.code is ErrorCode.ALLOCATION_FAILED


def test_read_header_returns_none_on_clean_eof():
    assert asyncio.run(_header_from(b"")) is None


def test_read_header_partial_is_framing_error():
    with pytest.raises(FramingError):
        asyncio.run(_header_from(b"128"))


def test_read_header_decodes_value():
    assert asyncio.run(_header_from(b"OK      ")) is ControlToken.OK


def test_read_header_deadline():
    async def scenario():
        await read_header(_reader(b"", eof=False), timeout=0.05)

    with pytest.raises(NetworkError) as info:
        asyncio.run(scenario())
    assert info.value.code is ErrorCode.TIMEOUT


def test_read_payload_collects_partial_chunks():
    async def scenario():
        reader = asyncio.StreamReader()

        async def feed():
            for chunk in (b"ab", b"cde", b"f"):
                await asyncio.sleep(0)
                reader.feed_data(chunk)

        feeder = asyncio.create_task(feed())
        data = await read_payload(reader, 6)
        await feeder
        return data

    assert asyncio.run(scenario()) == bytearray(b"abcdef")


def test_read_payload_short_stream_is_network_error():
    with pytest.raises(NetworkError) as info:
        asyncio.run(_payload_from(b"abc", 6))
    assert info.value.code is ErrorCode.RECEIVE_FAILED


def test_error_payload():
    payload = FramingError(message="bad").to_payload()
    assert payload == {"error": "FramingError", "error_code": int(ErrorCode.MALFORMED_HEADER), "error_message": "bad"}
