"""Tests for the offline heuristic companion."""

import random

import pytest

from unpack.features.conversation.heuristic import (
    EXPANSION_TEMPLATE,
    PROBING_TEMPLATES,
    QUESTION_REFLECTION,
    SOMATIC_FOLLOW_UPS,
    THEME_TEMPLATES,
    UNCERTAINTY_TEMPLATE,
    HeuristicResponder,
    HeuristicRule,
    classify_message,
    extract_key_phrase,
)
from unpack.features.conversation.persona import ConversationContext


class TestCascadeOrder:
    def test_intensity_outranks_question(self):
        rule, _ = classify_message("I'm devastated, why does this keep happening?")
        assert rule is HeuristicRule.INTENSITY

    def test_intensity_fires_regardless_of_length(self):
        rule, _ = classify_message("I feel anxious about this.")
        assert rule is HeuristicRule.INTENSITY

    def test_intensity_is_case_insensitive(self):
        rule, _ = classify_message("HONESTLY I am FURIOUS")
        assert rule is HeuristicRule.INTENSITY

    def test_question_outranks_themes(self):
        rule, _ = classify_message("What should I do next?")
        assert rule is HeuristicRule.QUESTION

    def test_question_ignores_trailing_whitespace(self):
        rule, _ = classify_message("Is this normal?  ")
        assert rule is HeuristicRule.QUESTION

    def test_uncertainty(self):
        rule, _ = classify_message("I'm not sure about any of it")
        assert rule is HeuristicRule.UNCERTAINTY

    def test_work_theme(self):
        rule, theme = classify_message("My boss ignored my proposal in the meeting again today and it stung")
        assert rule is HeuristicRule.THEME
        assert theme == "work"

    def test_relationship_theme(self):
        rule, theme = classify_message("I had dinner with my brother and we talked for hours")
        assert (rule, theme) == (HeuristicRule.THEME, "relationship")

    def test_self_theme_falls_through_to_short(self):
        rule, theme = classify_message("I think everything is fine")
        assert rule is HeuristicRule.SHORT
        assert theme is None

    def test_self_theme_falls_through_to_default(self):
        rule, _ = classify_message("i am sitting here on the porch watching the rain fall slowly tonight")
        assert rule is HeuristicRule.DEFAULT

    def test_short_message(self):
        rule, _ = classify_message("Just tired.")
        assert rule is HeuristicRule.SHORT

    def test_default(self):
        rule, _ = classify_message(
            "The garden looked different this morning with all the leaves on the ground"
        )
        assert rule is HeuristicRule.DEFAULT


class TestKeyPhrase:
    def test_last_four_words_of_final_sentence(self):
        message = "I'm not sure if I should push for that promotion or look elsewhere."
        assert extract_key_phrase(message) == "promotion or look elsewhere"

    def test_uses_last_non_blank_sentence(self):
        assert extract_key_phrase("It rained. Then the sun came out again!") == "sun came out again"

    def test_short_sentence_is_kept_whole(self):
        assert extract_key_phrase("Okay then.") == "Okay then"


class TestHeuristicResponder:
    def test_intensity_reply_validates_then_asks(self, rng):
        reply = HeuristicResponder(rng=rng).respond("I hate how this week went.")
        assert '"how this week went"' in reply
        assert any(reply.endswith(follow_up) for follow_up in SOMATIC_FOLLOW_UPS)

    def test_question_reply(self, rng):
        assert HeuristicResponder(rng=rng).respond("Why do I always do this?") == QUESTION_REFLECTION

    def test_uncertainty_reply(self, rng):
        reply = HeuristicResponder(rng=rng).respond("Maybe I should call her")
        assert reply == UNCERTAINTY_TEMPLATE.format(phrase="I should call her")

    def test_theme_reply(self, rng):
        message = "My boss ignored my proposal in the meeting again today and it stung"
        reply = HeuristicResponder(rng=rng).respond(message)
        assert reply == THEME_TEMPLATES["work"].format(phrase="today and it stung")

    def test_short_reply(self, rng):
        assert HeuristicResponder(rng=rng).respond("Just tired.") == EXPANSION_TEMPLATE.format(phrase="Just tired")

    def test_default_reply_is_a_probing_template(self, rng):
        message = "The garden looked different this morning with all the leaves on the ground"
        reply = HeuristicResponder(rng=rng).respond(message)
        options = [t.format(phrase="leaves on the ground") for t in PROBING_TEMPLATES]
        assert reply in options

    def test_seeded_generators_agree(self):
        message = "I love the way the light came through the window this morning"
        first = [HeuristicResponder(rng=random.Random(7)).respond(message) for _ in range(3)]
        second = [HeuristicResponder(rng=random.Random(7)).respond(message) for _ in range(3)]
        assert first == second

    @pytest.mark.asyncio
    async def test_opening_names_tangent_and_emotion(self, rng):
        context = ConversationContext(tangent_name="Career Doubts", emotion="fear")
        opening = await HeuristicResponder(rng=rng).open(context)
        assert "fear" in opening
        assert '"career doubts"' in opening

    @pytest.mark.asyncio
    async def test_reply_answers_latest_message(self, rng):
        context = ConversationContext(tangent_name="Rest", emotion="sadness")
        reply = await HeuristicResponder(rng=rng).reply(context, [], "Just tired.")
        assert reply == EXPANSION_TEMPLATE.format(phrase="Just tired")
