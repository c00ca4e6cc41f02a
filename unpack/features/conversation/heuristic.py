"""
Offline companion.

A rule cascade over the latest user message that imitates the persona without
any network access. Rules are checked in order and the first match wins:

1. intensity words      -> validate, then a somatic / permission question
2. ends with "?"        -> reflect the question back
3. uncertainty words    -> name the uncertainty
4. themes (work, relationship, self, future, past) -> themed prompt
5. fewer than 10 words  -> invite the user to say more
6. anything else        -> one of three probing prompts

Matching is case-insensitive substring matching. The "self" theme has no
prompt of its own: when it is the first theme to match, the cascade moves on
to rules 5 and 6.

Where several templates share a rule, one is picked with the injected
`random.Random`; pass a seeded instance for reproducible output.
"""

import logging
import random
import re
from enum import Enum
from typing import List, Optional, Tuple

from unpack.features.conversation.base import Responder
from unpack.features.conversation.messages import HistoryItem
from unpack.features.conversation.persona import ConversationContext

logger = logging.getLogger("Unpack.Conversation.Heuristic")

INTENSITY_WORDS = (
    "hate", "love", "angry", "furious", "devastated", "ecstatic",
    "terrified", "anxious", "depressed", "hopeless", "amazing", "incredible",
)

UNCERTAINTY_PHRASES = ("don't know", "not sure", "confused", "uncertain", "maybe", "might")

THEMES = (
    ("work", ("work", "job", "career", "boss", "colleague", "office", "promotion", "meeting")),
    ("relationship", ("friend", "family", "partner", "mom", "dad", "brother", "sister", "relationship", "love")),
    ("self", ("myself", "i feel", "i think", "i am", "i'm", "my life", "who i")),
    ("future", ("future", "tomorrow", "next", "plan", "goal", "dream", "hope", "want to")),
    ("past", ("remember", "used to", "before", "when i was", "back then", "regret")),
)

SHORT_MESSAGE_WORDS = 10
KEY_PHRASE_WORDS = 4

VALIDATIONS = (
    'I can feel the weight of that in your words. "{phrase}" - that sounds really significant.',
    'Thank you for sharing something so real. When you say "{phrase}", I sense there\'s a lot beneath the surface.',
    'That takes courage to express. I hear you when you say "{phrase}".',
)

SOMATIC_FOLLOW_UPS = (
    "What does your body feel like when you sit with this?",
    "If this feeling could speak, what would it want you to know?",
    "What would it mean to give yourself permission to feel this fully?",
)

QUESTION_REFLECTION = (
    "That's a question worth sitting with. I'm curious what prompted you to ask that right now? "
    "What answer would feel most true to you?"
)

UNCERTAINTY_TEMPLATE = (
    'I notice you\'re holding some uncertainty around "{phrase}". That\'s okay - sometimes not '
    "knowing is its own kind of knowing. What would clarity look like for you here?"
)

THEME_TEMPLATES = {
    "work": (
        "It sounds like your work is taking up real mental space right now. When you think about "
        '"{phrase}", what\'s the feeling underneath the situation?'
    ),
    "relationship": (
        "Relationships can be such mirrors for our own growth. I'm curious - in this dynamic you're "
        "describing, what do you need that you might not be expressing?"
    ),
    "future": (
        'I hear you thinking ahead about "{phrase}". What\'s one small thing about that future that '
        "excites you, and one thing that makes you nervous?"
    ),
    "past": (
        'There\'s wisdom in looking back. As you reflect on "{phrase}", what would your current self '
        "want to tell that past version of you?"
    ),
}

EXPANSION_TEMPLATE = (
    'I\'d love to hear more. When you say "{phrase}", what comes up for you? Don\'t filter - just '
    "let the thoughts flow."
)

PROBING_TEMPLATES = (
    'I notice something important in "{phrase}". What made you choose those particular words?',
    'There\'s a thread here I want to pull on. When you wrote "{phrase}", what were you feeling in that moment?',
    'I\'m sitting with what you shared. The phrase "{phrase}" stands out to me. What\'s the story behind it?',
)

OPENING_TEMPLATE = (
    'Thank you for putting this on the page. There\'s a real sense of {emotion} in "{name}", '
    "and it deserves some room. What feels most alive for you as you come back to it now?"
)


class HeuristicRule(str, Enum):
    INTENSITY = "intensity"
    QUESTION = "question"
    UNCERTAINTY = "uncertainty"
    THEME = "theme"
    SHORT = "short"
    DEFAULT = "default"


def extract_key_phrase(message: str) -> str:
    """Last four words of the last sentence (sentences end at . ! or ?)."""
    sentences = [s for s in re.split(r"[.!?]+", message) if s.strip()]
    last_sentence = sentences[-1].strip() if sentences else message
    return " ".join(last_sentence.split()[-KEY_PHRASE_WORDS:])


def match_theme(lowered: str) -> Optional[str]:
    for theme, keywords in THEMES:
        if any(keyword in lowered for keyword in keywords):
            return theme
    return None


def classify_message(message: str) -> Tuple[HeuristicRule, Optional[str]]:
    """Which rule answers `message`, and the theme when rule 4 fires."""
    lowered = message.lower()

    if any(word in lowered for word in INTENSITY_WORDS):
        return HeuristicRule.INTENSITY, None
    if message.rstrip().endswith("?"):
        return HeuristicRule.QUESTION, None
    if any(phrase in lowered for phrase in UNCERTAINTY_PHRASES):
        return HeuristicRule.UNCERTAINTY, None

    theme = match_theme(lowered)
    if theme in THEME_TEMPLATES:
        return HeuristicRule.THEME, theme

    if len(message.split()) < SHORT_MESSAGE_WORDS:
        return HeuristicRule.SHORT, None
    return HeuristicRule.DEFAULT, None


class HeuristicResponder(Responder):
    """Deterministic-by-input companion used when no live model is reachable."""

    name = "heuristic"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def respond(self, message: str) -> str:
        rule, theme = classify_message(message)
        phrase = extract_key_phrase(message)
        logger.debug(f"Heuristic rule {rule.value} (theme={theme})")

        if rule is HeuristicRule.INTENSITY:
            validation = self.rng.choice(VALIDATIONS).format(phrase=phrase)
            return f"{validation} {self.rng.choice(SOMATIC_FOLLOW_UPS)}"
        if rule is HeuristicRule.QUESTION:
            return QUESTION_REFLECTION
        if rule is HeuristicRule.UNCERTAINTY:
            return UNCERTAINTY_TEMPLATE.format(phrase=phrase)
        if rule is HeuristicRule.THEME:
            return THEME_TEMPLATES[theme].format(phrase=phrase)
        if rule is HeuristicRule.SHORT:
            return EXPANSION_TEMPLATE.format(phrase=phrase)
        return self.rng.choice(PROBING_TEMPLATES).format(phrase=phrase)

    async def open(self, context: ConversationContext) -> str:
        return OPENING_TEMPLATE.format(emotion=context.emotion, name=context.tangent_name.lower())

    async def reply(
        self,
        context: ConversationContext,
        history: List[HistoryItem],
        user_text: str,
    ) -> str:
        return self.respond(user_text)
