from __future__ import annotations

from dxcluster.protocol.telnet import DO, IAC, SB, SE, WILL, TelnetFilter


def test_plain_text_passes_through():
    f = TelnetFilter()
    assert f.feed(b"login: ") == b"login: "


def test_option_negotiation_is_removed():
    f = TelnetFilter()
    data = bytes([IAC, WILL, 1]) + b"Welcome\r\n" + bytes([IAC, DO, 3])
    assert f.feed(data) == b"Welcome\r\n"


def test_sequence_split_across_feeds():
    f = TelnetFilter()
    assert f.feed(b"abc" + bytes([IAC])) == b"abc"
    assert f.feed(bytes([WILL])) == b""
    assert f.feed(bytes([1]) + b"def") == b"def"


def test_escaped_iac_yields_data_byte():
    f = TelnetFilter()
    assert f.feed(bytes([0x41, IAC, IAC, 0x42])) == bytes([0x41, 0xFF, 0x42])


def test_subnegotiation_is_skipped():
    f = TelnetFilter()
    data = b"a" + bytes([IAC, SB, 24, 1, 2, 3, IAC, SE]) + b"b"
    assert f.feed(data) == b"ab"


def test_subnegotiation_split_across_feeds():
    f = TelnetFilter()
    assert f.feed(b"a" + bytes([IAC, SB, 24, 1])) == b"a"
    assert f.feed(bytes([2, IAC])) == b""
    assert f.feed(bytes([SE]) + b"b") == b"b"
