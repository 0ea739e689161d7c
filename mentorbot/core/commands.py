"""Slash-command handlers for chat transports.

Hard trigger handling:
    Messages starting with `/` are intercepted by `ChatEngine.process_message`
    before any memory or model work and dispatched here. Unknown commands get a
    short hint instead of reaching the model.

Supported commands:
    - `/start`: greeting.
    - `/help`: capability overview.
    - `/history`: show short-term window size and a truncated transcript.
    - `/history N`: set the short-term window size (N >= 1).
    - `/clear`: drop short-term turns (long-term facts are kept).
    - `/temp`: show temperature; `/temp T` sets it (0 to 2).
    - `/lang CODE`: pin a reply-language instruction for this user.

Failure handling:
    `ValidationError` from the memory or LLM layer is rendered as a user-facing
    message; no other exceptions are caught here.
"""

from mentorbot.errors import ValidationError


START_TEXT = (
    "Hi! I'm Harry, your mentor for freelancing and programming. "
    "I can help with your career, your code and your business. What can I do for you?"
)

HELP_TEXT = (
    "I can help you with:\n"
    "- Growing a freelance career\n"
    "- Writing better code\n"
    "- Communicating with clients\n"
    "- Building a portfolio\n"
    "- Finding projects\n"
    "- Programming best practices\n\n"
    "Commands: /history [N], /clear, /temp [T], /lang CODE\n"
    "Just write to me and I'll do my best to help!"
)

LANGUAGES = {
    "en": "English",
    "pl": "Polish",
    "de": "German",
    "es": "Spanish",
}


def parse_command(text: str):
    """Split `/name arg...` into `(name, args)`; `None` for non-command text."""
    if not text or not text.strip().startswith("/"):
        return None

    parts = text.strip().split()
    name = parts[0][1:].split("@", 1)[0].lower()
    return name, parts[1:]


def handle_command(engine, user_id, name: str, args: list) -> str:
    handler = COMMANDS.get(name)
    if handler is None:
        return f"Unknown command /{name}. Type /help to see what I can do."

    try:
        return handler(engine, str(user_id), args)
    except ValidationError as exc:
        return f"Invalid value: {exc}"


def _start(engine, user_id, args):
    return START_TEXT


def _help(engine, user_id, args):
    return HELP_TEXT


def _history(engine, user_id, args):
    store = engine.assembler.turn_store(user_id)

    if not args:
        summary = store.summarize() or "(empty)"
        return f"History window: {store.limit} messages.\n{summary}"

    try:
        limit = int(args[0])
    except ValueError:
        raise ValidationError(f"history size must be a whole number, got {args[0]!r}") from None

    engine.assembler.set_limit(user_id, limit)
    return f"History window set to {limit} messages."


def _clear(engine, user_id, args):
    engine.assembler.clear(user_id)
    return "Conversation history cleared."


def _temp(engine, user_id, args):
    if not args:
        return f"Current temperature: {engine.llm.temperature:g}"

    temperature = engine.llm.set_temperature(args[0])
    return f"Temperature set to {temperature:g}."


def _lang(engine, user_id, args):
    if not args or args[0].lower() not in LANGUAGES:
        options = ", ".join(sorted(LANGUAGES))
        return f"Usage: /lang CODE (one of: {options})"

    language = LANGUAGES[args[0].lower()]
    engine.assembler.set_system_instruction(user_id, f"Always answer in {language}.")
    return f"I will answer in {language} from now on."


COMMANDS = {
    "start": _start,
    "help": _help,
    "history": _history,
    "clear": _clear,
    "temp": _temp,
    "lang": _lang,
}
