#!/usr/bin/env python3
"""
Dictionary Telegram Bot

Users define words/phrases and look up definitions. Definitions live in
a sorted JSON file (see dictionary.store) so lookups are O(log n).

Commands:
  /start                  - Welcome message
  /dict PHRASE            - Look up a definition
  /define PHRASE = TEXT   - Add a definition
  /index TEXT             - Search definitions (case insensitive)
  /status                 - Dictionary stats

Usage:
  TELEGRAM_BOT_TOKEN=your_token python -m bot.telegram_bot
"""

import logging
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
)

from bot.commands import DictCommands, parse_define_args
from dictionary.config import load_config
from dictionary.store import open_store

logger = logging.getLogger(__name__)

# Telegram has a 4096 char limit per message
MAX_REPLY_CHARS = 4000


def _commands(context: ContextTypes.DEFAULT_TYPE) -> DictCommands:
    return context.bot_data["commands"]


def _args_text(context: ContextTypes.DEFAULT_TYPE) -> str:
    return " ".join(context.args or [])


def _author(update: Update) -> str:
    user = update.effective_user
    return user.username or user.first_name or str(user.id)


async def _reply(update: Update, text: str):
    if len(text) > MAX_REPLY_CHARS:
        # Split into chunks
        for i in range(0, len(text), MAX_REPLY_CHARS):
            await update.message.reply_text(text[i:i + MAX_REPLY_CHARS])
    else:
        await update.message.reply_text(text)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(
        "Hey, I keep the channel dictionary.\n\n"
        "Commands:\n"
        "/dict PHRASE - Look up a definition\n"
        "/define PHRASE = DEFINITION - Add a definition\n"
        "/index TEXT - Search definitions\n"
        "/status - Dictionary stats"
    )


async def dict_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /dict command."""
    phrase = _args_text(context)
    logger.info("/dict from %s: %s", _author(update), phrase[:100])
    await _reply(update, _commands(context).lookup(phrase))


async def define_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /define command."""
    commands = _commands(context)
    parsed = parse_define_args(_args_text(context))
    if parsed is None:
        logger.warning("Failed to get data for define command, got %r", context.args)
        await _reply(update, "Missing entries for define command, need phrase and definition")
        return

    phrase, definition = parsed
    logger.info("/define from %s: %s", _author(update), phrase[:100])
    await _reply(update, await commands.define_async(phrase, definition, _author(update)))


async def index_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /index command."""
    search_string = _args_text(context)
    logger.info("/index from %s: %s", _author(update), search_string[:100])
    await _reply(update, _commands(context).search(search_string))


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /status command."""
    await _reply(update, _commands(context).status())


def build_application(token: str, commands: DictCommands) -> Application:
    app = Application.builder().token(token).build()
    app.bot_data["commands"] = commands

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("dict", dict_command))
    app.add_handler(CommandHandler("define", define_command))
    app.add_handler(CommandHandler("index", index_command))
    app.add_handler(CommandHandler("status", status_command))
    return app


def main():
    """Start the bot."""
    config_path = os.environ.get("DICT_CONFIG", "config/dictionary.defaults.yml")
    config = load_config(config_path)

    logging.basicConfig(
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        level=logging.DEBUG if config.debug else logging.INFO,
    )
    if config.debug:
        logger.info("Enabling debug information")
    else:
        logger.info("Debugging information disabled")

    token = os.environ.get("TELEGRAM_BOT_TOKEN")
    if not token:
        logger.error("TELEGRAM_BOT_TOKEN not set")
        sys.exit(1)

    store = open_store(config)
    commands = DictCommands(
        store,
        wait_for_flush=config.wait_for_flush,
        flush_timeout_sec=config.flush_timeout_sec,
    )

    logger.info("Starting dictionary Telegram bot...")
    logger.info("Dictionary status:\n%s", commands.status())

    app = build_application(token, commands)

    # Start polling
    logger.info("Bot is running. Polling for messages...")
    try:
        app.run_polling(allowed_updates=Update.ALL_TYPES)
    finally:
        store.close(wait=True)


if __name__ == "__main__":
    main()
