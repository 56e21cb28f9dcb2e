"""
CLI interface for the Study Buddy tutor.

This module provides the command-line REPL (Read-Eval-Print Loop) for
chatting with the tutor through the proxy.

Learning Points:
- REPL Pattern: read a line, dispatch a slash command or chat, repeat
- Enhanced Input: prompt_toolkit gives history and a styled prompt
- Graceful errors: per-turn failures are chat messages, only setup
  failures end the program
"""

import argparse
import logging
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from .chat_client import EXPLANATION_LEVELS, SUGGESTED_QUESTIONS, ChatClient
from .config import ChatConfig

DEBUG_LOG_FILE = 'studybuddy_debug.log'


def create_prompt_session():
    """Create an enhanced prompt session with history and styling."""
    style = Style.from_dict({
        'prompt': 'bold cyan',  # "You: " appears in bold cyan
    })
    return PromptSession(
        history=InMemoryHistory(),  # ↑/↓ recalls earlier questions
        style=style,
        message="You: "
    )


def setup_logging(debug: bool) -> None:
    """Send DEBUG logs (prompts, replies, dropped frames) to a file in debug mode."""
    if debug:
        logging.basicConfig(
            filename=DEBUG_LOG_FILE,
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            filemode='w'  # Overwrite each run
        )
    else:
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Study Buddy: an AI tutor in your terminal",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--base-url', help='Proxy base URL (default: $STUDYBUDDY_BASE_URL or http://localhost:8787)')
    parser.add_argument('--api-key', help='Bearer token for the proxy (default: $STUDYBUDDY_API_KEY)')
    parser.add_argument('--topic', help='Study topic sent as context with every message')
    parser.add_argument('--context-file', help='File with background material for the topic')
    parser.add_argument('--language', default='en', help='Reply language code (en, hi, es, fr, de, pt, ja, zh)')
    parser.add_argument('--style', default='neutral',
                        choices=['neutral', 'enthusiastic', 'inquisitive', 'brief'],
                        help='Communication style of the tutor')
    parser.add_argument('--idle-timeout', type=float, default=60.0,
                        help='Seconds without streamed data before giving up')
    parser.add_argument('--speak', action='store_true', help='Read replies aloud when a TTS command is available')
    parser.add_argument('--debug', action='store_true', help=f'Log prompts and replies to {DEBUG_LOG_FILE}')
    return parser


def handle_command(client: ChatClient, user_input: str) -> bool:
    """Run a slash command. Returns False when the REPL should stop."""
    cmd, _, arg = user_input[1:].partition(' ')
    cmd = cmd.lower()
    arg = arg.strip()

    if cmd in ['quit', 'exit', 'q']:
        client.console.print("[yellow]👋 Goodbye![/yellow]")
        return False
    elif cmd == 'help':
        client.ui_manager.show_help()
    elif cmd == 'clear':
        client.clear_history()
    elif cmd == 'history':
        client.show_history()
    elif cmd == 'suggest':
        client.ui_manager.show_suggestions(SUGGESTED_QUESTIONS)
    elif cmd == 'ask':
        try:
            client.ask_suggested(int(arg))
        except ValueError as e:
            client.ui_manager.show_error(str(e) if arg.isdigit() else "Usage: /ask <number>")
    elif cmd == 'explain':
        level = arg.lower() or 'basic'
        if level not in EXPLANATION_LEVELS:
            client.ui_manager.show_error(f"Level must be one of: {', '.join(EXPLANATION_LEVELS)}")
        else:
            client.explain(level)
    elif cmd == 'topic':
        if not arg:
            client.ui_manager.show_error("Usage: /topic <name>")
        else:
            client.set_topic(arg)
            client.ui_manager.show_success(f"Topic set to: {client.config.topic}")
    elif cmd == 'study':
        client.study(arg or None)
    elif cmd == 'answers':
        client.show_answers()
    elif cmd == 'newquiz':
        client.new_quiz()
    elif cmd == 'plan':
        if not arg:
            client.ui_manager.show_error("Usage: /plan <your study goals>")
        else:
            client.plan(arg)
    elif cmd == 'doctor':
        client.check_setup()
    else:
        client.ui_manager.show_error(f"Unknown command: {user_input}")
    return True


def main():
    """Main CLI function implementing the REPL.

    Exit Codes:
        0: Normal exit (user quit)
        1: Error during setup
    """
    args = build_parser().parse_args()
    setup_logging(args.debug)

    try:
        config = ChatConfig.from_args(args)
        client = ChatClient(config)
    except (OSError, ValueError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    client.ui_manager.show_welcome(speech_supported=client.speech.supported)
    session = create_prompt_session()

    try:
        while True:
            try:
                user_input = session.prompt().strip()
                if not user_input:
                    continue

                if user_input.startswith('/'):
                    if not handle_command(client, user_input):
                        break
                    continue

                client.chat(user_input)

            except KeyboardInterrupt:
                client.console.print("\n[yellow]👋 Goodbye![/yellow]")
                break
            except EOFError:
                break
    except Exception as e:
        client.ui_manager.show_error(f"Error: {e}")
        sys.exit(1)
    finally:
        client.close()


if __name__ == "__main__":
    main()
