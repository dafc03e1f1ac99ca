"""
ck2world/personality.py
~~~~~~~~~~~~~~~~~~~~~~~
Translates the numeric traits stored on each character into the names of
their personality traits, using the trait table of the CK2 install.
"""

from __future__ import annotations

import logging

from ck2world.models import Character

logger = logging.getLogger(__name__)


def assign_personalities(
    characters: dict[int, Character],
    personalities: dict[int, str],
    log: logging.Logger = logger,
) -> int:
    """Fill ``Character.personalities``; returns how many characters received at least one."""
    if not personalities:
        log.info(">< No personality traits loaded, skipping.")
        return 0

    counter = 0
    for character in characters.values():
        # Traits missing from the table are not personality traits.
        character.personalities = [personalities[t] for t in character.trait_ids if t in personalities]
        if character.personalities:
            counter += 1
    log.info("<> %d characters have personalities.", counter)
    return counter
