import pytest

from zcpublish.config.publisher_config import (
    DEFAULT_PORT,
    ConfigurationError,
    PublisherConfig,
    parse_module_arguments,
)


class TestParseModuleArguments:

    @pytest.mark.parametrize("argument", [None, "", "   "])
    def test_missing_arguments_use_default_port(self, argument):
        assert parse_module_arguments(argument) == PublisherConfig(DEFAULT_PORT)

    def test_port(self):
        assert parse_module_arguments("port=4714").port == 4714

    def test_quoted_port(self):
        assert parse_module_arguments('port="6000"').port == 6000

    @pytest.mark.parametrize("port", ["0", "-1", "65536", "abc", "12.5", ""])
    def test_invalid_port_is_rejected(self, port):
        with pytest.raises(ConfigurationError):
            parse_module_arguments(f"port={port}")

    def test_bounds_are_inclusive(self):
        assert parse_module_arguments("port=1").port == 1
        assert parse_module_arguments("port=65535").port == 65535

    def test_unknown_key_is_rejected(self):
        with pytest.raises(ConfigurationError, match="unknown"):
            parse_module_arguments("port=4713 name=foo")

    def test_repeated_key_is_rejected(self):
        with pytest.raises(ConfigurationError, match="twice"):
            parse_module_arguments("port=4713 port=4714")

    def test_malformed_token_is_rejected(self):
        with pytest.raises(ConfigurationError, match="malformed"):
            parse_module_arguments("port")

    def test_unbalanced_quotes_are_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_module_arguments('port="4713')


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        PublisherConfig(port=70000)


def test_config_rejects_non_int_port():
    with pytest.raises(ConfigurationError):
        PublisherConfig(port="4713")  # type: ignore[arg-type]
