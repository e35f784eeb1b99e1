"""Tests for text normalization and tokenization."""

from __future__ import annotations

import pytest

from spam_guard.preprocessing import normalize, tokenize


class TestNormalize:
    def test_lowercases(self):
        assert normalize("HELLO") == "hello"

    def test_tags_become_spaces(self):
        assert normalize("A<br>B") == "a b"


class TestTokenize:
    """Tests for the tokenizer."""

    def test_basic_words(self):
        assert tokenize("Hello World") == ["hello", "world"]

    def test_single_characters_dropped(self):
        assert tokenize("a b cd e fg") == ["cd", "fg"]

    def test_punctuation_is_separator(self):
        assert tokenize("Earn $5000 per week!") == ["earn", "5000", "per", "week"]

    def test_apostrophe_splits_word(self):
        assert tokenize("You've won") == ["you", "ve", "won"]

    def test_html_tags_removed(self):
        assert tokenize("<p>Hello <b>there</b></p>") == ["hello", "there"]

    def test_url_reduced_to_host(self):
        tokens = tokenize("visit https://Promo.Example.com/claim?id=1 now")
        assert tokens == ["visit", "promo.example.com", "now"]

    def test_email_reduced_to_domain(self):
        tokens = tokenize("contact bob@mail.example.org today")
        assert tokens == ["contact", "mail.example.org", "today"]

    def test_hyphen_and_dot_kept(self):
        assert tokenize("fake-bank.com alert") == ["fake-bank.com", "alert"]

    def test_cjk_runs_kept_as_tokens(self):
        assert tokenize("点击领取奖品 免费赠送") == ["点击领取奖品", "免费赠送"]

    def test_cjk_punctuation_separates(self):
        assert tokenize("您好，附件是本月的工作报告。") == ["您好", "附件是本月的工作报告"]

    def test_no_stopword_removal(self):
        assert "the" in tokenize("the prize is yours")

    def test_order_preserved_with_duplicates(self):
        assert tokenize("prize click prize") == ["prize", "click", "prize"]

    @pytest.mark.parametrize("value", [None, "", 42, ["prize"], {"body": "prize"}])
    def test_non_text_yields_nothing(self, value):
        assert tokenize(value) == []

    def test_whitespace_only(self):
        assert tokenize("   \n\t ") == []
