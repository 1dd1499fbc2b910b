import pytest

from zcpublish.directory.service_name import (
    LABEL_MAX,
    alternative_service_name,
    make_endpoint_service_name,
    make_server_service_name,
    truncate_utf8,
)
from zcpublish.test.endpoint_fixtures import make_endpoint


class TestTruncateUtf8:

    def test_short_text_is_unchanged(self):
        assert truncate_utf8("speakers", 63) == "speakers"

    def test_ascii_is_cut_at_limit(self):
        assert truncate_utf8("abcdef", 3) == "abc"

    def test_multibyte_character_is_not_split(self):
        # "é" is two bytes; cutting after 2 bytes would split it.
        assert truncate_utf8("aé", 2) == "a"
        assert truncate_utf8("aé", 3) == "aé"

    def test_negative_limit_is_rejected(self):
        with pytest.raises(ValueError):
            truncate_utf8("abc", -1)


class TestAlternativeServiceName:

    def test_first_alternative_appends_two(self):
        assert alternative_service_name("Speakers") == "Speakers #2"

    def test_numbered_name_is_incremented(self):
        assert alternative_service_name("Speakers #2") == "Speakers #3"
        assert alternative_service_name("Speakers #9") == "Speakers #10"

    def test_zero_prefixed_number_is_not_treated_as_counter(self):
        assert alternative_service_name("Speakers #02") == "Speakers #02 #2"

    def test_successive_alternatives_are_distinct(self):
        names = ["x" * LABEL_MAX]
        for _ in range(25):
            names.append(alternative_service_name(names[-1]))
        assert len(set(names)) == len(names)
        assert all(len(n.encode("utf-8")) <= LABEL_MAX for n in names)

    def test_long_name_is_shortened_to_fit_suffix(self):
        name = "é" * 40  # 80 bytes
        alternative = alternative_service_name(name)
        assert alternative.endswith(" #2")
        assert len(alternative.encode("utf-8")) <= LABEL_MAX


class TestServiceNames:

    def test_endpoint_name_uses_description(self):
        endpoint = make_endpoint(7, description="Built-in Audio")
        assert (
            make_endpoint_service_name("alice", "host", endpoint)
            == "alice@host: Built-in Audio"
        )

    def test_endpoint_name_falls_back_to_bare_name(self):
        endpoint = make_endpoint(7, name="alsa_output.pci", description=None)
        assert (
            make_endpoint_service_name("alice", "host", endpoint)
            == "alice@host: alsa_output.pci"
        )

    def test_endpoint_name_is_truncated(self):
        endpoint = make_endpoint(7, description="d" * 100)
        name = make_endpoint_service_name("alice", "host", endpoint)
        assert len(name.encode("utf-8")) == LABEL_MAX
        assert name.startswith("alice@host: ddd")

    def test_server_name(self):
        assert make_server_service_name("alice", "host") == "alice@host"
