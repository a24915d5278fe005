"""Tests for the dialogue dash-spacing rule.

WHY: Dash spacing runs on every export by default, so a wrong space
shows up in every delivered manuscript. These tests pin the three
substitutions and the guarantees around them: canonical paragraphs stay
untouched, paragraphs never influence each other, re-running is a no-op.

HOW: Direct calls to normalize_dash_spacing() and DashSpacingRule with
small HTML and plain-text inputs.

RULES:
- Only hyphen-minus is spaced; en and em dash pass through
- A paragraph containing « or » is never modified
- None and "" are returned unchanged
"""

import pytest

from fermento_editor.rules.base import BaseRule
from fermento_editor.rules.dash_spacing import DashSpacingRule, normalize_dash_spacing


class TestOpeningSpacing:

    def test_hyphen_after_paragraph_tag(self):
        assert normalize_dash_spacing("<p>-Ehi</p>") == "<p>- Ehi</p>"

    def test_whitespace_after_tag_is_kept(self):
        assert normalize_dash_spacing("<p> -Ehi</p>") == "<p> - Ehi</p>"

    def test_uppercase_tag(self):
        assert normalize_dash_spacing("<P>-Ehi</P>") == "<P>- Ehi</P>"

    def test_already_spaced_is_unchanged(self):
        assert normalize_dash_spacing("<p>- Ehi</p>") == "<p>- Ehi</p>"

    def test_hyphen_after_br_tag(self):
        html = "<p>Lui disse:<br/>-Vieni qui.</p>"
        assert normalize_dash_spacing(html) == "<p>Lui disse:<br/>- Vieni qui.</p>"

    def test_hyphen_after_newline_in_plain_text(self):
        text = "Riga uno\n-Ehi\r\n-Sì"
        assert normalize_dash_spacing(text) == "Riga uno\n- Ehi\r\n- Sì"

    def test_hyphen_inside_word_is_untouched(self):
        html = "<p>Un dopo-cena tranquillo.</p>"
        assert normalize_dash_spacing(html) == html


class TestClosingSpacing:

    def test_glued_after_question_mark(self):
        html = "<p>- Davvero?- le chiese.</p>"
        assert normalize_dash_spacing(html) == "<p>- Davvero? - le chiese.</p>"

    def test_glued_to_following_word(self):
        assert normalize_dash_spacing("<p>Ciao? -le</p>") == "<p>Ciao? - le</p>"

    def test_all_terminal_marks(self):
        html = "<p>Sì.-a No!-b Chi?-c Forse…-d</p>"
        assert normalize_dash_spacing(html) == "<p>Sì. - a No! - b Chi? - c Forse… - d</p>"

    def test_extra_spaces_collapse(self):
        assert normalize_dash_spacing("<p>Basta!   -   disse</p>") == "<p>Basta! - disse</p>"

    def test_no_terminal_mark_no_change(self):
        html = "<p>rosso-blu</p>"
        assert normalize_dash_spacing(html) == html


class TestDoubleSpaceCleanup:

    def test_one_before_two_after(self):
        assert normalize_dash_spacing("<p>lui -  disse</p>") == "<p>lui - disse</p>"


class TestDashVariants:

    @pytest.mark.parametrize("html", [
        "<p>–Ehi</p>",
        "<p>—Ehi</p>",
        "<p>Ciao.–disse lui</p>",
        "<p>Ciao.—disse lui</p>",
    ])
    def test_en_and_em_dash_are_not_spaced(self, html):
        assert normalize_dash_spacing(html) == html


class TestGuards:

    def test_canonical_paragraph_is_untouched(self):
        html = "<p>«Ciao»-disse.-Lui</p>"
        assert normalize_dash_spacing(html) == html

    def test_only_the_non_canonical_paragraph_changes(self):
        html = "<p>«Fine.-»</p>\n<p>-Ehi</p>"
        assert normalize_dash_spacing(html) == "<p>«Fine.-»</p>\n<p>- Ehi</p>"

    def test_canonical_attributed_paragraph_is_untouched(self):
        html = '<p class="x">«Fine.-Lui»</p>'
        assert normalize_dash_spacing(html) == html

    def test_attributed_paragraph_is_left_to_the_author(self):
        html = '<p style="text-align:center">-Ehi</p>\n<p>-Ehi</p>\nRiga\n-Sì'
        assert normalize_dash_spacing(html) == (
            '<p style="text-align:center">-Ehi</p>\n<p>- Ehi</p>\nRiga\n- Sì'
        )

    def test_paragraph_boundaries_are_preserved(self):
        html = "<p>Fine.</p><p>-Ehi</p><p>Poi?</p>"
        result = normalize_dash_spacing(html)
        assert result == "<p>Fine.</p><p>- Ehi</p><p>Poi?</p>"
        assert result.count("<p>") == 3

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input_is_returned(self, value):
        assert normalize_dash_spacing(value) is value

    @pytest.mark.parametrize("html", [
        "<p>-Ehi</p>",
        "<p>- Davvero?- le chiese.</p>",
        "<p>lui -  disse</p>",
        "<p>Lui disse:<br>-Vieni.</p>\n<p>«Sì»</p>",
        "Riga\n-Ehi",
    ])
    def test_idempotent(self, html):
        once = normalize_dash_spacing(html)
        assert normalize_dash_spacing(once) == once


class TestRuleClass:

    def test_is_a_base_rule(self):
        rule = DashSpacingRule()
        assert isinstance(rule, BaseRule)
        assert rule.key == "dash_spacing"
        assert rule.name == "Dialogue dash spacing"
        assert rule.description

    def test_rewrites_plain_text(self):
        assert DashSpacingRule.rewrites_plain_text is True
