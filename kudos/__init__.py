"""
Kudos — Reaction-Powered Social Credit for Discord
===================================================
Counts the reactions a member's messages receive, keeps a balance of
"credits" per member in flat CSV files, and lets members spend those
credits on rewards from an interactive menu.

Package layout::

    kudos/
    ├── config.py          # .env + optional YAML → typed Python config
    ├── constants.py       # CSV headers, reward defaults, display badges
    ├── storage/
    │   ├── bridge.py      # run_io() — sync work off the event loop
    │   ├── models.py      # Row schemas + record dataclasses
    │   └── records.py     # CSV-backed RecordStore
    ├── engine/
    │   └── ledger.py      # CreditLedger (one credit per message)
    ├── services/
    │   ├── redemption_service.py   # Check → debit → log → notify
    │   ├── announcement_service.py # ChannelNotifier
    │   └── embeds.py               # Discord embed builders
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        └── cogs/
            ├── reactions.py  # on_raw_reaction_add → ledger
            ├── menu.py       # /menu select menu + redemptions
            ├── meta.py       # /balance, /leaderboard, /rewards
            └── tasks.py      # Dirty-ledger flush retry loop
"""

__version__ = "0.1.0"
