"""
ck2world/linker.py
~~~~~~~~~~~~~~~~~~
Resolves the raw IDs and tags stored during parsing into direct object
references between characters, titles, provinces and dynasties.

Each ``link_*`` function is one step of the linking pass and returns the
number of references it resolved. Dangling references are logged and
skipped; a single broken reference never stops the pass. The steps are
independent of what follows them but rely on everything before, so
``link_all`` runs them in a fixed order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ck2world.models import (
    CHINA_OFFMAP_TYPE,
    Character,
    Dynasty,
    Offmap,
    Province,
    Title,
    Wonder,
)

if TYPE_CHECKING:
    from ck2world.world import World

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Province ↔ county mapping
# ---------------------------------------------------------------------------

def filter_province_titles(
    province_titles: dict[str, int],
    provinces: dict[int, Province],
    titles: dict[str, Title],
    log: logging.Logger = logger,
) -> dict[str, int]:
    """Drop county mappings pointing at provinces or counties the save doesn't know."""
    kept = {
        tag: province_id
        for tag, province_id in province_titles.items()
        if province_id in provinces and tag in titles
    }
    log.info("<> %d province titles kept, %d filtered.", len(kept), len(province_titles) - len(kept))
    return kept


# ---------------------------------------------------------------------------
#  Characters
# ---------------------------------------------------------------------------

def link_dynasties(
    characters: dict[int, Character],
    dynasties: dict[int, Dynasty],
    log: logging.Logger = logger,
) -> int:
    """Attach dynasties and let them fill in missing culture and religion."""
    counter = 0
    for character in characters.values():
        if character.dynasty_id is None:
            continue
        dynasty = dynasties.get(character.dynasty_id)
        if dynasty is None:
            log.warning("Character %d has dynasty %d which has no definition!", character.id, character.dynasty_id)
            continue
        character.dynasty = dynasty
        if not character.culture:
            character.culture = dynasty.culture
        if not character.religion:
            character.religion = dynasty.religion
        counter += 1
    log.info("<> %d characters linked to dynasties.", counter)
    return counter


def link_lieges_and_spouses(characters: dict[int, Character], log: logging.Logger = logger) -> int:
    counter = 0
    for character in characters.values():
        if character.liege_id is not None:
            liege = characters.get(character.liege_id)
            if liege is None:
                log.warning("Character %d has liege %d which has no definition!", character.id, character.liege_id)
            else:
                character.liege = liege
                counter += 1
        for spouse_id in character.spouse_ids:
            spouse = characters.get(spouse_id)
            if spouse is None:
                log.warning("Character %d has spouse %d which has no definition!", character.id, spouse_id)
                continue
            character.spouses[spouse_id] = spouse
            spouse.spouses[character.id] = character
            counter += 1
    log.info("<> %d lieges and spouses linked.", counter)
    return counter


def link_mothers_and_fathers(characters: dict[int, Character], log: logging.Logger = logger) -> int:
    """Resolve both parents and register the character among each parent's children."""
    counter = 0
    for character in characters.values():
        for attr in ("mother", "father"):
            parent_id = getattr(character, f"{attr}_id")
            if parent_id is None:
                continue
            parent = characters.get(parent_id)
            if parent is None:
                log.warning("Character %d has %s %d which has no definition!", character.id, attr, parent_id)
                continue
            setattr(character, attr, parent)
            parent.children[character.id] = character
            counter += 1
    log.info("<> %d parents linked.", counter)
    return counter


def link_primary_titles(
    characters: dict[int, Character],
    titles: dict[str, Title],
    log: logging.Logger = logger,
) -> int:
    counter = 0
    for character in characters.values():
        if not character.primary_title_tag:
            continue
        title = titles.get(character.primary_title_tag)
        if title is None:
            log.warning("Character %d has primary title %s which has no definition!", character.id, character.primary_title_tag)
            continue
        character.primary_title = title
        counter += 1
    log.info("<> %d primary titles linked.", counter)
    return counter


def link_capitals(
    characters: dict[int, Character],
    provinces: dict[int, Province],
    log: logging.Logger = logger,
) -> int:
    """A capital is stored as a barony tag; find the province containing it."""
    barony_provinces = {
        barony_tag: province
        for province in provinces.values()
        for barony_tag in province.baronies
    }
    counter = 0
    for character in characters.values():
        if not character.capital_tag:
            continue
        province = barony_provinces.get(character.capital_tag)
        if province is None:
            log.warning("Character %d has capital %s which is in no known province!", character.id, character.capital_tag)
            continue
        character.capital = province
        counter += 1
    log.info("<> %d capitals linked.", counter)
    return counter


# ---------------------------------------------------------------------------
#  Provinces
# ---------------------------------------------------------------------------

def link_primary_settlements(provinces: dict[int, Province], log: logging.Logger = logger) -> int:
    counter = 0
    for province in provinces.values():
        if not province.primary_settlement_tag:
            continue
        barony = province.baronies.get(province.primary_settlement_tag)
        if barony is None:
            log.warning("Province %d has primary settlement %s which it doesn't contain!", province.id, province.primary_settlement_tag)
            continue
        province.primary_settlement = barony
        counter += 1
    log.info("<> %d primary settlements linked.", counter)
    return counter


def link_wonders(
    provinces: dict[int, Province],
    wonders: dict[int, Wonder],
    log: logging.Logger = logger,
) -> int:
    counter = 0
    for wonder in wonders.values():
        if not wonder.active:
            continue
        province = provinces.get(wonder.province_id)
        if province is None:
            log.warning("Wonder %d sits in province %d which has no definition!", wonder.id, wonder.province_id)
            continue
        province.wonder = wonder
        counter += 1
    log.info("<> %d wonders linked.", counter)
    return counter


# ---------------------------------------------------------------------------
#  Titles
# ---------------------------------------------------------------------------

def link_holders(
    titles: dict[str, Title],
    characters: dict[int, Character],
    log: logging.Logger = logger,
) -> int:
    counter = 0
    for title in titles.values():
        if title.holder_id is None:
            continue
        holder = characters.get(title.holder_id)
        if holder is None:
            log.warning("Title %s has holder %d which has no definition!", title.tag, title.holder_id)
            continue
        title.holder = holder
        counter += 1
    log.info("<> %d holders linked.", counter)
    return counter


def link_previous_holders(
    titles: dict[str, Title],
    characters: dict[int, Character],
    log: logging.Logger = logger,
) -> int:
    counter = 0
    for title in titles.values():
        title.previous_holders = []
        for holder_id in title.previous_holder_ids:
            holder = characters.get(holder_id)
            if holder is None:
                log.warning("Title %s has previous holder %d which has no definition!", title.tag, holder_id)
                continue
            title.previous_holders.append(holder)
            counter += 1
    log.info("<> %d previous holders linked.", counter)
    return counter


def link_lieges(titles: dict[str, Title], log: logging.Logger = logger) -> int:
    """Resolve liege and de-jure liege tags. Vassal maps are filled by ``link_vassals``."""
    counter = 0
    for title in titles.values():
        if title.liege_tag:
            liege = titles.get(title.liege_tag)
            if liege is None:
                log.warning("Title %s has liege %s which has no definition!", title.tag, title.liege_tag)
                title.liege_tag = None
            else:
                title.liege = liege
                counter += 1
        if title.de_jure_liege_tag:
            de_jure_liege = titles.get(title.de_jure_liege_tag)
            if de_jure_liege is None:
                log.warning("Title %s has de jure liege %s which has no definition!", title.tag, title.de_jure_liege_tag)
            else:
                title.de_jure_liege = de_jure_liege
                counter += 1
    log.info("<> %d lieges and de jure lieges linked.", counter)
    return counter


def link_vassals(titles: dict[str, Title], log: logging.Logger = logger) -> int:
    counter = 0
    for title in titles.values():
        if title.liege is not None:
            title.liege.vassals[title.tag] = title
            counter += 1
        if title.de_jure_liege is not None:
            title.de_jure_liege.de_jure_vassals[title.tag] = title
            counter += 1
    log.info("<> %d vassals and de jure vassals linked.", counter)
    return counter


def link_title_provinces(
    titles: dict[str, Title],
    provinces: dict[int, Province],
    province_titles: dict[str, int],
    log: logging.Logger = logger,
) -> int:
    counter = 0
    for county_tag, province_id in province_titles.items():
        title = titles.get(county_tag)
        province = provinces.get(province_id)
        if title is None or province is None:
            log.warning("Cannot link county %s to province %d, one of them is undefined!", county_tag, province_id)
            continue
        title.provinces[province_id] = province
        counter += 1
    log.info("<> %d provinces linked to counties.", counter)
    return counter


def link_base_titles(titles: dict[str, Title], log: logging.Logger = logger) -> int:
    counter = 0
    for title in titles.values():
        if not title.base_title_tag:
            continue
        base = titles.get(title.base_title_tag)
        if base is None:
            log.warning("Title %s has base title %s which has no definition!", title.tag, title.base_title_tag)
            continue
        title.base_title = base
        counter += 1
    log.info("<> %d base titles linked.", counter)
    return counter


# ---------------------------------------------------------------------------
#  Offmaps
# ---------------------------------------------------------------------------

def find_china(offmaps: dict[int, Offmap]) -> Offmap | None:
    for offmap in offmaps.values():
        if offmap.type == CHINA_OFFMAP_TYPE:
            return offmap
    return None


def link_celestial_emperor(
    offmaps: dict[int, Offmap],
    characters: dict[int, Character],
    dynasties: dict[int, Dynasty],
    log: logging.Logger = logger,
) -> bool:
    """Link the celestial empire's holder and that holder's dynasty, bailing out at the first gap."""
    china = find_china(offmaps)
    if china is None:
        log.info(">< No China detected.")
        return False
    if china.holder_id is None:
        log.info(">< China has no emperor.")
        return False
    emperor = characters.get(china.holder_id)
    if emperor is None:
        log.info(">< Celestial emperor has no definition!")
        return False
    china.holder = emperor
    if emperor.dynasty_id is None:
        log.info(">< Celestial emperor has no dynasty!")
        return False
    dynasty = dynasties.get(emperor.dynasty_id)
    if dynasty is None:
        log.info(">< Celestial emperor's dynasty has no definition!")
        return False
    emperor.dynasty = dynasty
    log.info("<> One Celestial Emperor linked.")
    return True


# ---------------------------------------------------------------------------
#  Full pass
# ---------------------------------------------------------------------------

def link_all(world: World, log: logging.Logger = logger) -> None:
    """Run every linking step over the world's tables in dependency order."""
    log.info("-- Filtering Excess Province Titles")
    world.province_titles = filter_province_titles(world.province_titles, world.provinces, world.titles, log)
    log.info("-- Linking Characters With Dynasties")
    link_dynasties(world.characters, world.dynasties, log)
    log.info("-- Linking Characters With Lieges and Spouses")
    link_lieges_and_spouses(world.characters, log)
    log.info("-- Linking Characters With Family")
    link_mothers_and_fathers(world.characters, log)
    log.info("-- Linking Characters With Primary Titles")
    link_primary_titles(world.characters, world.titles, log)
    log.info("-- Linking Characters With Capitals")
    link_capitals(world.characters, world.provinces, log)
    log.info("-- Linking Provinces With Primary Baronies")
    link_primary_settlements(world.provinces, log)
    log.info("-- Linking Provinces With Wonders")
    link_wonders(world.provinces, world.wonders, log)
    log.info("-- Linking Titles With Holders")
    link_holders(world.titles, world.characters, log)
    log.info("-- Linking Titles With Previous Holders")
    link_previous_holders(world.titles, world.characters, log)
    log.info("-- Linking Titles With Liege and DeJure Titles")
    link_lieges(world.titles, log)
    log.info("-- Linking Titles With Vassals and DeJure Vassals")
    link_vassals(world.titles, log)
    log.info("-- Linking Titles With Provinces")
    link_title_provinces(world.titles, world.provinces, world.province_titles, log)
    log.info("-- Linking Titles With Base Titles")
    link_base_titles(world.titles, log)
    log.info("-- Linking The Celestial Emperor")
    link_celestial_emperor(world.offmaps, world.characters, world.dynasties, log)
