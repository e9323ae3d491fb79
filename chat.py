#!/usr/bin/env python3
"""Interactive console for the Meal Planner Bot.

Drives the same conversation engine a chat transport would, from a terminal.

Usage:
    python chat.py
    python chat.py --stateless          # In-memory sessions even if MONGO_URI is set
    python chat.py --user alice         # Resume/continue a specific user's session
    python chat.py --debug              # Show the stored session after every reply

In the chat:
    <number>   pick the numbered option
    /start     start over
    /quit      exit
    any text   free text (custom ingredient, dish name)
"""

import asyncio
import sys

from rich.console import Console
from rich.markdown import Markdown

from src.bot.factory import initialize_conversation_engine
from src.conversation.commands import Reply
from src.services.session_store import SessionStore, run_session_sweeper
from src.utils.logger import logger
from src.utils.safe_execute import safe_execute_async

console = Console()


async def show_progress(user_id: str, text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


def render_reply(reply: Reply) -> None:
    """Print reply text as markdown followed by numbered options."""
    console.print()
    console.print(Markdown(reply.text))
    options = reply.flat_options()
    if options:
        console.print()
        for i, option in enumerate(options, start=1):
            console.print(f"  [bold cyan]{i:>2}[/bold cyan]  {option.label}")
    console.print()


async def run_chat(user_id: str, stateless: bool = False, debug: bool = False) -> None:
    engine, store = initialize_conversation_engine(use_db=not stateless, progress_callback=show_progress)
    sweeper = asyncio.create_task(run_session_sweeper(store))

    try:
        reply = await engine.current_prompt(user_id)
        while True:
            render_reply(reply)
            if debug:
                await show_session(store, user_id)

            line = (await asyncio.to_thread(console.input, "[bold green]> [/bold green]")).strip()
            if not line:
                continue
            if line in ("/quit", "/exit"):
                break

            options = reply.flat_options()
            if line.isdigit() and 1 <= int(line) <= len(options):
                reply = await engine.handle_command(user_id, options[int(line) - 1].command)
            else:
                reply = await engine.handle_text(user_id, line)
    finally:
        sweeper.cancel()
        await safe_execute_async(store.backend.close(), "Close session backend")


async def show_session(store: SessionStore, user_id: str) -> None:
    session = await store.get(user_id)
    console.print("[dim]" + "=" * 60 + "[/dim]")
    console.print_json(session.model_dump_json(exclude={"recipes"}))
    console.print("[dim]" + "=" * 60 + "[/dim]")


if __name__ == "__main__":
    debug_mode = False
    stateless_mode = False
    user = "console"
    argv_start = 1

    while argv_start < len(sys.argv):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag == "--stateless":
            stateless_mode = True
            argv_start += 1
        elif flag == "--user":
            argv_start += 1
            if argv_start >= len(sys.argv):
                print("Error: --user flag requires an id")
                sys.exit(1)
            user = sys.argv[argv_start]
            argv_start += 1
        else:
            print(f"Unknown flag: {flag}")
            print("Usage: python chat.py [--debug] [--stateless] [--user ID]")
            sys.exit(1)

    try:
        asyncio.run(run_chat(user, stateless=stateless_mode, debug=debug_mode))
    except (KeyboardInterrupt, EOFError):
        logger.info("Chat interrupted by user.")
    except Exception as e:
        logger.error(f"Chat failed: {e}", exc_info=True)
        sys.exit(1)
