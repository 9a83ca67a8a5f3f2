"""
Tests for configuration helpers and localized messages (config/).
"""

import pytest

from config import COMMAND_ALIASES, aliases_for, get_message, resolve_alias
from config.messages import MESSAGES


class TestAliases:
    @pytest.mark.parametrize("typed,command", [
        ("p", "play"),
        ("P", "play"),
        ("NP", "nowplaying"),
        ("Vol", "volume"),
        ("dc", "stop"),
        ("play", "play"),
        ("unknown", "unknown"),
    ])
    def test_resolve_alias_is_case_insensitive(self, typed, command):
        assert resolve_alias(typed) == command

    def test_aliases_for_lists_every_alias(self):
        assert set(aliases_for("skip")) == {"s", "sk", "next"}

    def test_aliases_never_shadow_commands(self):
        commands = set(COMMAND_ALIASES.values())
        assert not commands & set(COMMAND_ALIASES)


class TestMessages:
    def test_languages_define_the_same_keys(self):
        assert set(MESSAGES["hi"]) == set(MESSAGES["en"])

    def test_formatting(self):
        assert "500" in get_message("QUEUE_FULL", capacity=500)
        assert "**3/4**" in get_message("SKIP_VOTE", votes=3, required=4)

    def test_hindi(self):
        assert get_message("QUEUE_EMPTY", language="hi") == MESSAGES["hi"]["QUEUE_EMPTY"]

    def test_unknown_language_falls_back_to_english(self):
        assert get_message("QUEUE_EMPTY", language="fr") == MESSAGES["en"]["QUEUE_EMPTY"]

    def test_unknown_key_is_returned_as_is(self):
        assert get_message("NOT_A_KEY") == "NOT_A_KEY"
