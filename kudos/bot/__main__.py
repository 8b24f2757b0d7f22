"""
kudos.bot.__main__ — Entry point for ``python -m kudos.bot``
============================================================

Wiring:
1. Load .env (secrets).
2. Resolve config from the environment and optional config.yaml.
3. Build the RecordStore and load the ignore list.
4. Build the CreditLedger and load balances from disk.
5. Create the KudosBot and hand it config + store + ledger.
6. Start the bot (blocking — runs the asyncio event loop).

Run with::

    python -m kudos.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from kudos.bot.core import KudosBot
from kudos.config import load_config
from kudos.engine.ledger import CreditLedger
from kudos.storage.records import RecordStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("kudos")


def main() -> None:
    """Bootstrap and run the Kudos bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Configuration.
    try:
        cfg = load_config(os.getenv("KUDOS_CONFIG", "config.yaml"))
    except ValueError as exc:
        logger.critical("Invalid configuration: %s", exc)
        sys.exit(1)
    logger.info(
        "Config loaded — balances: %s, rewards: %s",
        cfg.balances_path, ", ".join(r.tag for r in cfg.rewards),
    )

    # 3. Storage.
    store = RecordStore(cfg.balances_path, cfg.ignored_users_path, cfg.rewards_path)
    ignored = store.load_ignored_users()
    logger.info("Ignoring %d user(s)", len(ignored))

    # 4. Ledger.
    ledger = CreditLedger(store, ignored_users=ignored, increment=cfg.reaction_increment)
    ledger.load()

    # 5. Bot.
    bot = KudosBot(cfg=cfg, store=store, ledger=ledger)

    # 6. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Kudos bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
