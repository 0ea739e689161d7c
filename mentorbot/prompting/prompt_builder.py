"""Prompt assembly helpers used by the engine and by memory compaction.

This module is intentionally narrow: it only builds prompt strings and chat
message lists from already assembled inputs. Retrieval, memory writes, and model
invocation happen outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of prompt components.
    - No hidden side effects (no I/O, no global state mutation).

Message order produced by `build_chat_messages`:
    1) system message: assistant identity + recalled facts block
    2) replayed short-term turns (a pinned per-user system turn stays a system
       message)
    3) the incoming user message
"""

from typing import Sequence


# =========================================================
# SYSTEM IDENTITY
# =========================================================

SYSTEM_PROMPT = (
    "You are an AI assistant named Harry. You must always:\n"
    "1. Remember that YOU are Harry - an experienced freelance mentor. "
    "Never say you are just an AI without a name.\n"
    "2. Keep your identity consistent - always introduce yourself as Harry.\n"
    "3. Provide expert guidance on:\n"
    "   - Writing professional and maintainable code\n"
    "   - Business aspects of freelancing\n"
    "   - Client communication and project management\n"
    "   - Portfolio development\n"
    "   - Finding projects in the Polish market\n"
    "   - Best practices in software development\n"
    "4. Keep responses practical, actionable, professional but friendly, "
    "and concise but informative."
)


# =========================================================
# COMPACTION PROMPT
# =========================================================
# Used by long-term memory compaction. The model must keep every named personal
# attribute.

COMPACTION_SYSTEM_PROMPT = (
    "You are a memory compaction component. Merge the stored facts about one "
    "user into a single concise, factual, neutral summary written in third person. "
    "Retain EVERY named personal attribute exactly: names, places, preferences, "
    "occupations, relationships, dates and numbers. Do not speculate, do not add "
    "new information, do not drop any attribute even if it seems minor."
)

COMPACTION_INSTRUCTION = "Summarize the stored facts listed above into one paragraph."


def _fact_text(fact) -> str:
    if isinstance(fact, dict):
        return str(fact.get("text", "")).strip()
    text = getattr(fact, "raw_text", None)
    if text is None:
        text = fact
    return str(text).strip()


def _turn_message(turn) -> dict:
    if isinstance(turn, dict):
        return {"role": turn.get("role", "user"), "content": str(turn.get("content", ""))}
    return {"role": turn.role, "content": turn.content}


def format_facts(facts) -> str:
    """Render recalled facts as a bullet block, or `""` when there are none."""
    lines = [f"- {text}" for text in (_fact_text(f) for f in facts) if text]
    if not lines:
        return ""
    return "Known information about the user (background only, do not quote):\n" + "\n".join(lines)


def build_system_message(system_prompt: str, facts) -> str:
    block = format_facts(facts)
    if not block:
        return system_prompt.strip()
    return system_prompt.strip() + "\n\n" + block


def build_chat_messages(
    system_prompt: str,
    turns: Sequence,
    facts: Sequence,
    user_message: str,
) -> list[dict]:
    """Build an OpenAI-style message list for one completion call.

    Args:
        system_prompt: Identity or task instructions.
        turns: Short-term turns (`Turn` objects or role/content dicts).
        facts: Recalled facts (`Fact` objects, dicts with `text`, or strings).
        user_message: The incoming message.

    Returns:
        List of `{"role", "content"}` dicts.

    Edge cases:
        - Empty `facts` leaves the system prompt unchanged.
        - Empty turns with empty content are skipped.
    """
    messages = [{"role": "system", "content": build_system_message(system_prompt, facts)}]

    for turn in turns:
        message = _turn_message(turn)
        if message["content"].strip():
            messages.append(message)

    messages.append({"role": "user", "content": str(user_message).strip()})
    return messages
