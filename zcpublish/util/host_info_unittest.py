from zcpublish.util import host_info


def test_user_name(mocker):
    mocker.patch("getpass.getuser", return_value="alice")
    assert host_info.get_user_name() == "alice"


def test_user_name_falls_back_when_unknown(mocker):
    mocker.patch("getpass.getuser", side_effect=KeyError("uid 1234"))
    assert host_info.get_user_name() == "unknown"


def test_host_name(mocker):
    mocker.patch("socket.gethostname", return_value="host")
    assert host_info.get_host_name() == "host"


def test_fqdn(mocker):
    mocker.patch("socket.getfqdn", return_value="host.example.com")
    assert host_info.get_fqdn() == "host.example.com"
