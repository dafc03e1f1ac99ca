"""
ck2world/recovery.py
~~~~~~~~~~~~~~~~~~~~
Recovers characters that reach the builder without religion or culture.

Characters usually inherit both from their dynasty. When a save was made
with mods, some dynasties are only defined in those mods, so after linking
we walk the mod folders one by one, under-load their dynasty definitions
and relink until every character is sane or we run out of mods.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ck2world.linker import link_dynasties
from ck2world.loader import load_dynasty_folder
from ck2world.models import Character, Dynasty
from ck2world.paths import DYNASTIES_SUBDIR

logger = logging.getLogger(__name__)


class ModDynastyLoader:
    """Yields the dynasty definitions of every mod under a mod folder, in name order."""

    def __init__(self, mod_folder: str | Path | None, log: logging.Logger = logger) -> None:
        self._folder = Path(mod_folder) if mod_folder else None
        self._log = log

    def __iter__(self) -> Iterator[tuple[str, dict[int, Dynasty]]]:
        if self._folder is None or not self._folder.is_dir():
            self._log.warning("Mod folder '%s' not found, nothing to rummage through.", self._folder)
            return
        for mod_dir in sorted(p for p in self._folder.iterdir() if p.is_dir()):
            dynasty_dir = mod_dir / DYNASTIES_SUBDIR
            if not dynasty_dir.is_dir():
                continue
            self._log.info("Found something interesting in %s", mod_dir.name)
            yield mod_dir.name, load_dynasty_folder(dynasty_dir)


def count_insane_characters(characters: dict[int, Character]) -> int:
    return sum(1 for c in characters.values() if not c.religion or not c.culture)


def under_load_dynasties(dynasties: dict[int, Dynasty], incoming: dict[int, Dynasty]) -> int:
    """Add unknown dynasties and fill blanks in known ones; never overwrite. Returns dynasties touched."""
    counter = 0
    for dynasty_id, dynasty in incoming.items():
        known = dynasties.get(dynasty_id)
        if known is None:
            dynasties[dynasty_id] = dynasty
            counter += 1
            continue
        touched = False
        for attr in ("name", "culture", "religion"):
            if not getattr(known, attr) and getattr(dynasty, attr):
                setattr(known, attr, getattr(dynasty, attr))
                touched = True
        counter += touched
    return counter


def verify_religions_and_cultures(
    characters: dict[int, Character],
    dynasties: dict[int, Dynasty],
    sources: ModDynastyLoader | list[tuple[str, dict[int, Dynasty]]],
    log: logging.Logger = logger,
) -> bool:
    """Run the recovery loop if needed; returns True once every character is sane."""
    log.info("-- Verifying All Characters Have Religion And Culture Loaded")
    insanity = count_insane_characters(characters)
    if not insanity:
        log.info("<> All %d characters are sane.", len(characters))
        return True
    log.warning("! %d characters have lacking definitions! Attempting recovery.", insanity)

    log.info("-> Rummaging through mods in search of definitions.")
    for mod_name, mod_dynasties in sources:
        under_load_dynasties(dynasties, mod_dynasties)
        link_dynasties(characters, dynasties, log)
        insanity = count_insane_characters(characters)
        if not insanity:
            log.info("<> All %d characters have been sanified by %s. Cancelling rummage.", len(characters), mod_name)
            return True
        log.warning("! %d characters are still lacking definitions. Continuing with the rummage.", insanity)

    log.warning("... We did what we could.")
    return False
