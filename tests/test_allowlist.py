import logging

import pytest

from services.allowlist import STREAM_DOMAINS, AllowList, parse_stream_url
from services.errors import PolicyError, ValidationError


def test_build_normalizes_and_merges_sources():
    allowlist = AllowList.build([" Example.COM ", ".cdn.example.net.", ""], ["radio.test"], None)

    assert allowlist.domains == frozenset({"example.com", "cdn.example.net", "radio.test"})
    assert len(allowlist) == 3


def test_exact_and_dot_suffix_hosts_are_permitted():
    allowlist = AllowList.build(["example.com"])

    assert allowlist.permits("example.com")
    assert allowlist.permits("cdn.example.com")
    assert allowlist.permits("a.b.EXAMPLE.com")


@pytest.mark.parametrize(
    "hostname",
    ["badexample.com", "example.com.evil.net", "com", "", None],
)
def test_lookalike_hosts_are_rejected(hostname):
    allowlist = AllowList.build(["example.com"])

    assert not allowlist.permits(hostname)


def test_check_returns_the_url_for_allowed_hosts():
    allowlist = AllowList.build(STREAM_DOMAINS)

    url = " https://bss1.neterra.tv/magicfm/magicfm.m3u8 "

    assert allowlist.check(url) == "https://bss1.neterra.tv/magicfm/magicfm.m3u8"


def test_check_rejects_hosts_outside_the_list(caplog):
    caplog.set_level(logging.WARNING, logger="familyframe")
    allowlist = AllowList.build(STREAM_DOMAINS)

    with pytest.raises(PolicyError) as excinfo:
        allowlist.check("https://bss1.neterra.tv.attacker.example/x.m3u8")

    assert excinfo.value.status_code == 403
    assert any("not in allowlist" in record.message for record in caplog.records)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "   ",
        "ftp://bss.neterra.tv/file",
        "javascript:alert(1)",
        "http:///no-host",
        "http://bss.neterra.tv:port/live",
        "bss.neterra.tv/live.m3u8",
    ],
)
def test_malformed_urls_raise_validation_error(raw):
    with pytest.raises(ValidationError) as excinfo:
        parse_stream_url(raw)

    assert excinfo.value.status_code == 400


def test_allowlist_is_immutable():
    allowlist = AllowList.build(["example.com"])

    with pytest.raises(AttributeError):
        allowlist.domains.add("evil.example")  # type: ignore[attr-defined]
    with pytest.raises(Exception):
        allowlist.domains = frozenset()  # type: ignore[misc]
