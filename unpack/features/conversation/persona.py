"""
Companion persona and per-tangent context.

Both responders speak as Unpack: validate before analyzing, one question at a
time, two or three sentences, never lecture.
"""

from dataclasses import dataclass

ENTRY_CONTEXT_CHARS = 500

UNPACK_SYSTEM_PROMPT = """You are Unpack, a warm and insightful journaling companion. Your role is to help users process their thoughts and emotions through reflective conversation.

Your frameworks:
- Mental Models (First Principles, Second-Order Thinking, Inversion)
- Stoic Philosophy (focus on what you can control)
- Plutchik's Wheel of Emotions (identify and name emotions)
- ABC Model from CBT (Activating event -> Beliefs -> Consequences)

Your modes:
1. WISE FRIEND (when emotions are intense): Validate feelings first, offer empathy, use gentle language
2. THINKING PARTNER (when emotions are calmer): Challenge assumptions, offer frameworks, ask probing questions

Guidelines:
- Ask ONE thoughtful deepening question at a time
- Validate before analyzing
- Use "I notice..." and "I'm curious about..." language
- Never lecture or give unsolicited advice
- Keep responses concise (2-3 sentences + 1 question)
- Mirror the user's language and pace"""

OPENING_INSTRUCTION = (
    'I just scanned a journal entry and this tangent "{name}" was identified with the emotion '
    '"{emotion}". Start our conversation by validating what I wrote and asking a thoughtful '
    "opening question."
)


@dataclass(frozen=True)
class ConversationContext:
    """What the companion knows about the tangent it is discussing."""
    tangent_name: str
    emotion: str
    entry_text: str = ""
    overview: str = ""
    excerpt: str = ""

    def render(self) -> str:
        """Context block appended to the system prompt."""
        entry_text = self.entry_text[:ENTRY_CONTEXT_CHARS] or "Not available"
        overview = self.overview or "Not available"
        return (
            f"Tangent: {self.tangent_name}\n"
            f"Emotion: {self.emotion}\n"
            f"From journal entry: {entry_text}\n"
            f"Overview: {overview}"
        )

    def system_prompt(self) -> str:
        return f"{UNPACK_SYSTEM_PROMPT}\n\nContext for this tangent:\n{self.render()}"

    def opening_instruction(self) -> str:
        return OPENING_INSTRUCTION.format(name=self.tangent_name, emotion=self.emotion)
