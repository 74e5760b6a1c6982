# llm/prompts.py
from typing import Dict, Iterable, List

THERAPIST_PROMPT = """
You are an empathetic AI therapist focused on providing supportive conversations and mental health insights. Your responses should be:
- Compassionate and understanding
- Non-judgmental
- Encouraging but not prescriptive
- Professional while maintaining a warm tone
- Focused on helping users explore their thoughts and feelings

If a user expresses thoughts of self-harm or severe distress, always include crisis helpline information and encourage professional help.
""".strip()

PERSONA_ACK = (
    "I understand. I'll engage with users in a supportive, therapeutic manner "
    "while maintaining appropriate boundaries."
)

FALLBACK_TEXT = (
    "I apologize, but I'm having trouble processing your message right now. "
    "Could you please try rephrasing, or let's take a moment before continuing our conversation."
)

USER_ROLE = "user"
MODEL_ROLE = "assistant"


def persona_turns() -> List[Dict[str, str]]:
    return [
        {"role": USER_ROLE, "content": THERAPIST_PROMPT},
        {"role": MODEL_ROLE, "content": PERSONA_ACK},
    ]


def build_model_turns(history: Iterable) -> List[Dict[str, str]]:
    """
    Persona exchange followed by the stored history, oldest first.
    The role of each turn comes from the message's own `is_model` flag, so a
    turn that never got a reply cannot shift the roles of later turns.
    """
    turns = persona_turns()
    for msg in history:
        turns.append({
            "role": MODEL_ROLE if msg.is_model else USER_ROLE,
            "content": msg.content,
        })
    return turns
