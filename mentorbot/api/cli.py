"""
Interactive CLI adapter for mentorbot.

Architectural role:
- Exposes terminal interaction for a single local user.
- Delegates all conversation work to `mentorbot.core.engine.ChatEngine`, so
  slash commands (`/history`, `/clear`, `/temp`, `/lang`, ...) behave exactly as
  they do over HTTP.

Request lifecycle (per user turn, CLI):
1. Read stdin (in a worker thread so background memory work keeps running).
2. Handle local exit words (`exit`/`quit`).
3. Route everything else to the engine and print the reply.

Error handling strategy:
- EOF and keyboard interrupts terminate the loop without traceback output.
- Pending background memory writes are drained before the process exits.

Side effects:
- Builds the production engine (loads the embedding model) at startup.
- Writes prompts and replies to stdout.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os

from mentorbot.core.engine import ChatEngine, build_engine


LOCAL_USER_ID = "local"
EXIT_WORDS = ("exit", "quit")


async def run(engine: ChatEngine, user_id: str = LOCAL_USER_ID, read=input, write=print):
    """Run the read-reply loop until EOF, interrupt, or an exit word."""
    try:
        while True:
            try:
                message = (await asyncio.to_thread(read, "You: ")).strip()
            except EOFError:
                write("")
                break
            except KeyboardInterrupt:
                write("\nInterrupted.")
                break

            if not message:
                continue

            if message.lower() in EXIT_WORDS:
                write("Shutting down.")
                break

            reply = await engine.process_message(user_id, message)
            write(f"\nHarry: {reply}\n")
            write("-" * 60)
    finally:
        await engine.aclose()


def main():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("Starting mentorbot. Type /help for commands, 'exit' to quit.\n")
    engine = build_engine()

    try:
        asyncio.run(run(engine))
    except KeyboardInterrupt:
        print("\nInterrupted.")


if __name__ == "__main__":
    main()
