"""Tests for KEYINFO request and reply handling."""

import pytest

from gpg_indicator.errors import AgentError, MalformedResponse
from gpg_indicator.gpg.agent import keyinfo_request, parse_keyinfo_reply

GRIP = "CB18328AD05158F97CC8F33682F7AD291F52CB08"


def test_request_line():
    assert keyinfo_request(GRIP) == f"KEYINFO {GRIP}\n"


class TestParseKeyinfoReply:

    def test_cached_flag_set(self):
        assert parse_keyinfo_reply(f"S KEYINFO {GRIP} D - - 1 P - - -\nOK\n") is True

    def test_cached_flag_unset(self):
        assert parse_keyinfo_reply(f"S KEYINFO {GRIP} D - - - P - - -\nOK\n") is False

    def test_example_status_lines(self):
        assert parse_keyinfo_reply("S KEYINFO ABCD1234 D - - - 1 - - -\nOK\n") is True
        assert parse_keyinfo_reply("S KEYINFO ABCD1234 D - - - 0 - - -\nOK\n") is False

    def test_single_line_is_agent_error(self):
        with pytest.raises(AgentError) as excinfo:
            parse_keyinfo_reply("ERR 67108891 Not found <GPG Agent>\n")
        assert excinfo.value.reply == "ERR 67108891 Not found <GPG Agent>"

    def test_error_line_followed_by_more_output(self):
        with pytest.raises(AgentError):
            parse_keyinfo_reply("ERR 67108891 Not found <GPG Agent>\nOK\n")

    @pytest.mark.parametrize("line", [
        f"S KEYINFO {GRIP} D - - 1 P - -",
        f"S KEYINFO {GRIP} D - - 1 P - - - extra",
        "S KEYINFO",
    ])
    def test_wrong_token_count(self, line):
        with pytest.raises(MalformedResponse):
            parse_keyinfo_reply(f"{line}\nOK\n")

    def test_empty_reply(self):
        with pytest.raises(MalformedResponse):
            parse_keyinfo_reply("")
