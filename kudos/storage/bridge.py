"""
kudos.storage.bridge — Async Bridge for Blocking Work
======================================================

**Why this file exists:**
Discord bots run on an ``asyncio`` event loop.  The ledger writes CSV
files and serialises its mutations with a ``threading.Lock`` — both are
**blocking**.  Called straight from a Cog they would freeze every other
event until the write returns.

The pattern:

    1. An event fires in Discord  (async world).
    2. The Cog calls ``await run_io(ledger.record_reaction, a, b, c)``.
    3. ``run_io`` ships the synchronous call to a **thread pool** via
       ``asyncio.to_thread()``.
    4. The file work happens on a background thread — the event loop stays free.
    5. The result is awaited back in the Cog, which can then reply to the user.

Usage::

    from kudos.storage.bridge import run_io

    credited = await run_io(bot.ledger.record_reaction, reactor, author, msg)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")


async def run_io(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** callable on a background thread.

    Parameters
    ----------
    func:
        Any sync callable (typically a ledger or record-store method).
    *args, **kwargs:
        Forwarded to *func*.

    Returns
    -------
    T
        Whatever *func* returns.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
