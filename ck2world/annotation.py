"""
ck2world/annotation.py
~~~~~~~~~~~~~~~~~~~~~~
Collects courtier names and advisers for the rulers of independent titles.

Courtier names later seed monarch-name lists; advisers are courtiers
holding a council job. Nothing in the graph is relinked here.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from ck2world.models import Character, Title

logger = logging.getLogger(__name__)


def collect_courts(
    characters: dict[int, Character],
) -> tuple[dict[int, dict[str, bool]], dict[int, dict[int, Character]]]:
    """Group characters by host: ``{host: {name: is_male}}`` and ``{host: {id: adviser}}``."""
    courtier_names: defaultdict[int, dict[str, bool]] = defaultdict(dict)
    advisers: defaultdict[int, dict[int, Character]] = defaultdict(dict)
    for character in characters.values():
        if character.host_id is None:
            continue
        # The first courtier registered under a name decides its sex.
        courtier_names[character.host_id].setdefault(character.name, not character.female)
        if character.job:
            advisers[character.host_id][character.id] = character
    return courtier_names, advisers


def gather_courtier_names(
    characters: dict[int, Character],
    independent_titles: dict[str, Title],
    log: logging.Logger = logger,
) -> tuple[int, int]:
    """Copy each independent ruler's court onto the ruler; returns (names, advisers) counts."""
    courtier_names, advisers = collect_courts(characters)
    name_counter = 0
    adviser_counter = 0
    for title in independent_titles.values():
        holder = title.holder
        if holder is None:
            continue
        if holder.id in courtier_names:
            holder.courtier_names = dict(courtier_names[holder.id])
            name_counter += len(holder.courtier_names)
        if holder.id in advisers:
            holder.advisers = dict(advisers[holder.id])
            adviser_counter += len(holder.advisers)
    log.info("<> %d people gathered for interrogation. %d were detained.", name_counter, adviser_counter)
    return name_counter, adviser_counter
