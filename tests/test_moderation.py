import pytest

from echo_messenger.core.errors import InvalidRequest
from echo_messenger.moderation.policy import (
    check_avatar,
    check_username,
    classify,
    count_graphemes,
    moderate_message,
    sanitize,
)
from echo_messenger.moderation.profanity import ProfanityFilter, normalize
from echo_messenger.moderation.zalgo import count_combining_marks, is_zalgo

ACUTE = chr(0x0301)
EXTENDED_MARK = chr(0x1AB0)
SUPPLEMENT_MARK = chr(0x1DC0)

ZWJ = chr(0x200D)
FAMILY = ZWJ.join([chr(0x1F468), chr(0x1F469), chr(0x1F467)])
THUMBS_UP_DARK = chr(0x1F44D) + chr(0x1F3FF)
GRINNING = chr(0x1F600)


class TestNormalize:
    @pytest.mark.parametrize(
        "token",
        ["h3ll0", "HELLO", "$h!7", "@$$", "(0013", "a.b-c", "", "!!!", "ünïcode", "5|_|p3r"],
    )
    def test_idempotent(self, token):
        assert normalize(normalize(token)) == normalize(token)

    def test_leetspeak_table(self):
        assert normalize("h3ll0") == "hello"
        assert normalize("@4(3!|05$7") == "aaceiiosst"
        assert normalize("8ob") == "bob"

    def test_strips_everything_outside_a_to_z(self):
        assert normalize("F.u-c_k") == "fuck"
        assert normalize("ça") == "a"


class TestProfanityFilter:
    def test_leet_token_matches_blocklist(self):
        words = ProfanityFilter(["hello"])

        assert classify("h3ll0", words).profane is True
        assert classify("well hello", words).profane is True
        assert classify("hi there", words).profane is False

    def test_sanitize_masks_original_token_length(self):
        words = ProfanityFilter(["hello"])

        assert sanitize("h3ll0 world", words) == "***** world"
        assert sanitize("HELLO,", words) == "******"

    def test_sanitize_collapses_whitespace(self):
        words = ProfanityFilter(["hello"])

        assert sanitize("  hello \t  there\n", words) == "***** there"

    def test_exact_match_only(self):
        assert classify("a classic assessment").profane is False
        assert classify("what an @$$").profane is True

    def test_default_blocklist(self):
        assert classify("oh sh1t").profane is True
        assert sanitize("what the fuck") == "what the ****"


class TestZalgo:
    def test_two_marks_tolerated(self):
        text = "e" + ACUTE * 2

        assert count_combining_marks(text) == 2
        assert is_zalgo(text) is False

    def test_three_marks_is_zalgo(self):
        assert is_zalgo("e" + ACUTE * 3) is True

    def test_counts_all_three_ranges(self):
        text = "a" + ACUTE + "b" + EXTENDED_MARK + "c" + SUPPLEMENT_MARK

        assert count_combining_marks(text) == 3
        assert classify(text).zalgo is True

    def test_marks_spread_over_text_add_up(self):
        assert is_zalgo("ca" + ACUTE + "fe" + ACUTE + " re" + ACUTE + "sume") is True


class TestUsernamePolicy:
    def test_accepts_clean_name(self):
        assert check_username("QuantumWraith42") == "QuantumWraith42"

    def test_rejects_profane(self):
        with pytest.raises(InvalidRequest):
            check_username("5h!t")

    def test_rejects_zalgo(self):
        with pytest.raises(InvalidRequest):
            check_username("bob" + ACUTE * 4)


class TestAvatarPolicy:
    @pytest.mark.parametrize("avatar", [GRINNING, FAMILY, THUMBS_UP_DARK])
    def test_single_emoji_accepted(self, avatar):
        assert count_graphemes(avatar) == 1
        assert check_avatar(avatar) == avatar

    @pytest.mark.parametrize("avatar", ["", "a", GRINNING * 2, "ab", GRINNING + "a"])
    def test_rejected(self, avatar):
        with pytest.raises(InvalidRequest):
            check_avatar(avatar)


class TestMessagePolicy:
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_empty_rejected(self, content):
        with pytest.raises(InvalidRequest):
            moderate_message(content)

    def test_clean_message_untouched(self):
        assert moderate_message("  hi   there ") == "  hi   there "

    def test_profane_message_censored(self):
        assert moderate_message("this is bullsh1t") == "this is ********"

    def test_zalgo_rejected_even_when_profane(self):
        with pytest.raises(InvalidRequest):
            moderate_message("shit" + ACUTE * 5)
