import pytest

from zcpublish.announce.txt_record import (
    SERVER_VERSION,
    ServerInfo,
    make_endpoint_txt,
    make_server_txt,
)
from zcpublish.endpoints.sample_spec import SampleFormat
from zcpublish.test.endpoint_fixtures import make_endpoint


def test_server_txt(server_info):
    assert make_server_txt(server_info) == {
        "server-version": "zcpublish 0.1.0",
        "user-name": "alice",
        "fqdn": "host.example.com",
        "cookie": "0x1234abcd",
    }


def test_cookie_is_zero_padded():
    info = ServerInfo("v", "u", "f", cookie=0x2A)
    assert make_server_txt(info)["cookie"] == "0x0000002a"


def test_endpoint_txt(server_info):
    endpoint = make_endpoint(
        3,
        name="alsa_output.usb",
        rate=48000,
        channels=1,
        sample_format=SampleFormat.FLOAT32LE,
    )
    txt = make_endpoint_txt(server_info, endpoint)

    assert list(txt.keys()) == [
        "server-version",
        "user-name",
        "fqdn",
        "cookie",
        "device",
        "rate",
        "channels",
        "format",
        "channel_map",
    ]
    assert txt["device"] == "alsa_output.usb"
    assert txt["rate"] == "48000"
    assert txt["channels"] == "1"
    assert txt["format"] == "float32le"
    assert txt["channel_map"] == "mono"


def test_collect_reads_local_identity(mocker):
    mocker.patch(
        "zcpublish.announce.txt_record.get_user_name", return_value="bob"
    )
    mocker.patch(
        "zcpublish.announce.txt_record.get_fqdn", return_value="box.lan"
    )

    info = ServerInfo.collect(cookie=7)

    assert info == ServerInfo(SERVER_VERSION, "bob", "box.lan", 7)


def test_collect_draws_32_bit_cookie():
    assert 0 <= ServerInfo.collect().cookie <= 0xFFFFFFFF


def test_cookie_out_of_range_is_rejected():
    with pytest.raises(ValueError):
        ServerInfo("v", "u", "f", cookie=1 << 32)
