#!/usr/bin/env python3
"""
Quiz Server - Main Entry Point

Runs the quiz server or one of its front-ends.

Usage:
    python main.py serve [--config config.json]
    python main.py console [--server-info server_info.dat]
    python main.py discord [--server-info server_info.dat]

Configuration:
    config.json (optional) holds the "server" and "logging" sections.
    server_info.dat holds the address clients connect to: host on the
    first line, port on the second.

Environment Variables:
    QUIZ_SERVER_PORT: Listening port (overrides config.json)
    DISCORD_BOT_TOKEN: Discord bot token for the discord front-end
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from quizline.config_manager import ConfigManager
from quizline.question_bank import QuestionBankError, default_question_bank, load_question_bank
from quizline.server import QuizServer, ServerBindError


def load_config(config_path: Path) -> dict:
    """Load configuration from a JSON file, or an empty config if it is missing."""
    if not config_path.exists():
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
        return config if isinstance(config, dict) else {}
    except json.JSONDecodeError as e:
        print(f"❌ Error: Invalid JSON in {config_path}: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"❌ Error loading {config_path}: {e}")
        sys.exit(1)


def setup_logging_from_config(config: dict) -> None:
    """Set up logging based on configuration."""
    log_config = config.get('logging', {})
    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)
    log_directory = Path(log_config.get('log_directory', './logs/'))

    log_directory.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_directory / "quizline.log", encoding='utf-8')
        ]
    )

    logging.getLogger('discord').setLevel(logging.WARNING)  # Reduce discord.py noise
    logging.getLogger('discord.http').setLevel(logging.WARNING)


async def run_server(config: dict) -> None:
    """Build the question bank and serve until interrupted."""
    config_manager = ConfigManager()
    for error in config_manager.apply_config(config):
        print(f"⚠️ Ignoring invalid setting {error}")

    port = os.getenv('QUIZ_SERVER_PORT')
    if port:
        try:
            result = config_manager.set_port(int(port))
        except ValueError:
            result = {'success': False}
        if not result['success']:
            print(f"⚠️ Ignoring invalid QUIZ_SERVER_PORT: {port}")

    question_file = config_manager.get_question_file()
    bank = load_question_bank(question_file) if question_file else default_question_bank()

    server = QuizServer(bank, config_manager.get_server_settings())
    await server.start()
    print(config_manager.get_settings_summary())
    print(f"🧠 Quiz server listening on port {server.port} with {bank.size()} questions")
    try:
        await server.serve_forever()
    finally:
        await server.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Line-protocol quiz game")
    parser.add_argument('mode', choices=['serve', 'console', 'discord'])
    parser.add_argument('--config', default='config.json', help="Path to config.json")
    parser.add_argument('--server-info', default=ConfigManager.DEFAULT_SERVER_INFO_FILE,
                        help="Path to the two-line server address file")
    args = parser.parse_args()

    config = load_config(Path(args.config))
    setup_logging_from_config(config)

    try:
        if args.mode == 'serve':
            asyncio.run(run_server(config))
        elif args.mode == 'console':
            from quizline.console_client import run_console
            address = ConfigManager().read_server_info(args.server_info)
            finished = asyncio.run(run_console(address))
            sys.exit(0 if finished else 1)
        else:
            from quizline.discord_client import run_bot
            address = ConfigManager().read_server_info(args.server_info)
            asyncio.run(run_bot(address))
    except KeyboardInterrupt:
        print("\n👋 Stopped by user")
    except (ServerBindError, QuestionBankError) as e:
        print(f"❌ Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
