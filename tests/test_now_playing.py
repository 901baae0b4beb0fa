import asyncio

import httpx
import pytest

from conftest import ChunkedStream, upstream_reply
from services.allowlist import AllowList
from services.errors import ParseError, PolicyError, StreamTimeoutError, UpstreamError, ValidationError
from services.now_playing import (
    NowPlayingExtractor,
    decode_metadata_block,
    locate_metadata_block,
    parse_bitrate,
    parse_metadata_interval,
    parse_stream_title,
)


STATION_URL = "https://ice1.somafm.com/groovesalad-128-mp3"
ICY_HEADERS = {
    "content-type": "audio/mpeg",
    "icy-name": "Groove Salad",
    "icy-description": "Ambient beats",
    "icy-genre": "Ambient",
    "icy-br": "128,128",
    "icy-url": "https://somafm.com",
}


def icy_body(interval: int, metadata: str, audio: bytes = b"\xff") -> bytes:
    encoded = metadata.encode("utf-8")
    blocks = -(-len(encoded) // 16)
    return audio * interval + bytes([blocks]) + encoded.ljust(blocks * 16, b"\x00") + audio * interval


def split(data: bytes, size: int):
    return [data[i:i + size] for i in range(0, len(data), size)]


def test_locate_metadata_block_finds_a_complete_block():
    chunk = b"aaaa" + b"\x01" + b"StreamTitle='a';"

    assert locate_metadata_block(0, chunk, 4) == (b"StreamTitle='a';", 21)


def test_locate_metadata_block_before_the_boundary():
    assert locate_metadata_block(0, b"aa", 4) == (None, 2)


def test_locate_metadata_block_incomplete_block_keeps_the_count():
    assert locate_metadata_block(2, b"aa\x02abc", 4) == (None, 2)


def test_locate_metadata_block_empty_block():
    assert locate_metadata_block(0, b"aaaa\x00rest", 4) == (b"", 5)


def test_locate_metadata_block_past_the_boundary():
    assert locate_metadata_block(10, b"abc", 4) == (None, 13)


@pytest.mark.parametrize(
    "metadata, expected",
    [
        ("StreamTitle='Artist - Title';", ("Artist - Title", "Artist", "Title")),
        ("StreamTitle='SoloTitle';StreamUrl='';", ("SoloTitle", None, "SoloTitle")),
        ("StreamTitle='A - B - C';", ("A - B - C", "A", "B - C")),
        ("StreamTitle='It's Here - Now'", ("It's Here - Now", "It's Here", "Now")),
    ],
)
def test_parse_stream_title(metadata, expected):
    assert parse_stream_title(metadata.encode() + b"\x00" * 5) == expected


@pytest.mark.parametrize("block", [b"", b"StreamUrl='x';", b"StreamTitle='';"])
def test_parse_stream_title_requires_a_title(block):
    with pytest.raises(ParseError):
        parse_stream_title(block)


def test_decode_metadata_block_falls_back_to_latin1():
    assert decode_metadata_block(b"StreamTitle='Caf\xe9';\x00\x00") == "StreamTitle='Café';"


@pytest.mark.parametrize(
    "value, expected",
    [("128", 128), ("128,128", 128), (" 64 ", 64), ("abc", None), ("-5", None), (None, None)],
)
def test_parse_bitrate(value, expected):
    assert parse_bitrate(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [("16000", 16000), ("1", 1), ("0", None), ("70000", None), ("x", None), (None, None)],
)
def test_parse_metadata_interval(value, expected):
    assert parse_metadata_interval(value) == expected


@pytest.mark.asyncio
async def test_extract_reads_headers_and_title(client_factory):
    body = icy_body(32, "StreamTitle='Boards of Canada - Roygbiv';")
    factory = client_factory(
        lambda request: upstream_reply(200, headers={**ICY_HEADERS, "icy-metaint": "32"}, body=body)
    )

    info = await NowPlayingExtractor(client_factory=factory).extract(STATION_URL)

    assert info.station_name == "Groove Salad"
    assert info.description == "Ambient beats"
    assert info.genre == "Ambient"
    assert info.bitrate_kbps == 128
    assert info.homepage_url == "https://somafm.com"
    assert info.content_type == "audio/mpeg"
    assert info.raw_title == "Boards of Canada - Roygbiv"
    assert info.artist == "Boards of Canada"
    assert info.title == "Roygbiv"
    sent = factory.calls[0]
    assert sent.headers["icy-metadata"] == "1"
    assert sent.headers["user-agent"] == "FamilyFrame/1.0"


@pytest.mark.asyncio
async def test_extract_handles_a_block_split_across_chunks(client_factory):
    body = icy_body(40, "StreamTitle='SoloTitle';")
    stream = ChunkedStream(split(body, 7))
    factory = client_factory(
        lambda request: httpx.Response(200, headers={"icy-metaint": "40"}, stream=stream)
    )

    info = await NowPlayingExtractor(client_factory=factory).extract(STATION_URL)

    assert info.raw_title == "SoloTitle"
    assert info.artist is None
    assert info.title == "SoloTitle"
    assert stream.closed


@pytest.mark.asyncio
async def test_extract_without_metaint_returns_headers_only(client_factory):
    stream = ChunkedStream([b"\xff" * 64], repeat_last=True)
    factory = client_factory(lambda request: httpx.Response(200, headers=ICY_HEADERS, stream=stream))

    info = await NowPlayingExtractor(client_factory=factory).extract(STATION_URL)

    assert info.station_name == "Groove Salad"
    assert info.raw_title is None
    assert info.artist is None
    assert info.title is None
    assert stream.reads == 0


@pytest.mark.asyncio
async def test_extract_with_empty_metadata_block(client_factory):
    body = b"\xff" * 16 + b"\x00" + b"\xff" * 16
    factory = client_factory(
        lambda request: upstream_reply(200, headers={"icy-metaint": "16"}, body=body)
    )

    info = await NowPlayingExtractor(client_factory=factory).extract(STATION_URL)

    assert info.raw_title is None
    assert info.title is None


@pytest.mark.asyncio
async def test_extract_gives_up_after_the_byte_budget(client_factory):
    stream = ChunkedStream([b"\xff" * 100], repeat_last=True)
    factory = client_factory(lambda request: httpx.Response(200, headers={"icy-metaint": "16000"}, stream=stream))
    extractor = NowPlayingExtractor(client_factory=factory, margin=100)

    info = await extractor.extract(STATION_URL)

    assert info.title is None
    assert stream.reads * 100 <= 16000 + 100 + 100


@pytest.mark.asyncio
async def test_stalled_body_returns_header_info(client_factory):
    stream = ChunkedStream([b"\xff" * 16], stall=5.0)
    factory = client_factory(
        lambda request: httpx.Response(200, headers={**ICY_HEADERS, "icy-metaint": "8"}, stream=stream)
    )

    info = await NowPlayingExtractor(client_factory=factory, timeout=0.1).extract(STATION_URL)

    assert info.station_name == "Groove Salad"
    assert info.title is None


@pytest.mark.asyncio
async def test_slow_upstream_times_out(client_factory):
    async def handler(request):
        await asyncio.sleep(5)
        return upstream_reply(200)

    extractor = NowPlayingExtractor(client_factory=client_factory(handler), timeout=0.05)

    with pytest.raises(StreamTimeoutError) as excinfo:
        await extractor.extract(STATION_URL)

    assert excinfo.value.status_code == 504
    assert excinfo.value.detail == "Timeout fetching stream metadata"


@pytest.mark.asyncio
async def test_transport_timeout_is_reported_as_timeout(client_factory):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(StreamTimeoutError):
        await NowPlayingExtractor(client_factory=client_factory(handler)).extract(STATION_URL)


@pytest.mark.asyncio
async def test_transport_failure_is_reported(client_factory):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError) as excinfo:
        await NowPlayingExtractor(client_factory=client_factory(handler)).extract(STATION_URL)

    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_url_httpx_cannot_encode_is_a_validation_error(client_factory):
    factory = client_factory(lambda request: upstream_reply(200))

    with pytest.raises(ValidationError) as excinfo:
        await NowPlayingExtractor(client_factory=factory).extract("https://xn--.somafm.com/groovesalad")

    assert excinfo.value.status_code == 400
    assert factory.calls == []


@pytest.mark.asyncio
async def test_redirect_to_unlisted_host_is_refused(client_factory):
    def handler(request):
        return httpx.Response(302, headers={"location": "http://127.0.0.1:8080/admin"})

    factory = client_factory(handler)
    extractor = NowPlayingExtractor(client_factory=factory, allowlist=AllowList.build(["somafm.com"]))

    with pytest.raises(PolicyError):
        await extractor.extract(STATION_URL)

    assert len(factory.calls) == 1
