"""
ck2world/restructuring.py
~~~~~~~~~~~~~~~~~~~~~~~~~
Political restructuring of the linked title graph.

The converted map should reflect who actually controls the land rather
than the nominal feudal ladder on the day of the save. The transforms run
in a fixed order, each on the graph left behind by the previous one:

  1. merge_independent_baronies — standalone baronies go back under their county
  2. merge_revolts              — rebel dynamic titles fold into their base titles
  3. shatter_hre                — the designated HRE releases its members
  4. shatter_empires            — every other empire releases its vassals
  5. split_vassals              — oversized vassals become independent

Steps 1-4 run before sovereignty classification, step 5 after it.
Liege and vassal links are rewritten destructively; nothing is rolled back.
"""

from __future__ import annotations

import logging

from ck2world.config_loader import Configuration, HreMapper, HreMode, ShatterEmpires, ShatterLevel
from ck2world.models import BARONY, COUNTY, DUCHY, EMPIRE, KINGDOM, Title

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Policy constants
# ---------------------------------------------------------------------------

# Kingdoms that are never broken up when their empire shatters.
SHATTER_PROTECTED_KINGDOMS = frozenset({"k_papal_state", "k_orthodox"})

# Independent titles whose vassals are never split off.
SPLIT_PROTECTED_TITLES = frozenset({"k_papal_state", "e_outremer", "e_china_west_governor"})

# Hordes and tribes have no meaningful vassal share.
UNSPLITTABLE_GOVERNMENTS = frozenset({"tribal_government", "nomadic_government"})

# A vassal goes independent with more than 1/relevant_vassals + 10% of the liege's land.
LIBERATION_MARGIN = 0.1

HRE_TAGS = {
    HreMode.HRE: "e_hre",
    HreMode.BYZANTIUM: "e_byzantium",
    HreMode.ROME: "e_roman_empire",
}

REVOLT_MARKERS = ("_rebels", "_revolt")

# Tier of the vassals a liege of a given tier may lose to splitting.
SPLIT_VASSAL_TIER = {
    EMPIRE: KINGDOM,
    KINGDOM: DUCHY,
}


# ---------------------------------------------------------------------------
#  Baronies and revolts
# ---------------------------------------------------------------------------

def merge_independent_baronies(titles: dict[str, Title], log: logging.Logger = logger) -> int:
    """Reattach every held, liege-less barony under its de-jure county."""
    counter = 0
    for title in titles.values():
        if title.holder is None or title.liege is not None:
            continue
        if not title.tag.startswith(BARONY):
            continue
        if title.de_jure_liege is None or not title.de_jure_liege.tag.startswith(COUNTY):
            continue
        title.override_liege()
        counter += 1
    log.info("<> %d baronies reassigned.", counter)
    return counter


def is_revolt(title: Title) -> bool:
    return title.dynamic and any(marker in title.tag for marker in REVOLT_MARKERS)


def merge_revolts(titles: dict[str, Title], log: logging.Logger = logger) -> int:
    """Fold rebel dynamic titles into their base titles.

    Vassals and provinces move over to the base title and the revolt title
    is bricked, so a second run has nothing left to merge.
    """
    counter = 0
    for title in titles.values():
        if not is_revolt(title) or title.base_title is None:
            continue
        if not title.vassals and not title.provinces and title.holder is None:
            continue
        base = title.base_title
        for vassal in list(title.vassals.values()):
            vassal.set_liege(base)
        base.provinces.update(title.provinces)
        title.provinces.clear()
        title.brick()
        counter += 1
    log.info("<> %d revolts merged into their base titles.", counter)
    return counter


# ---------------------------------------------------------------------------
#  HRE
# ---------------------------------------------------------------------------

def resolve_hre_tag(config: Configuration, hre_mapper: HreMapper | None = None) -> str | None:
    """Return the tag of the empire acting as HRE, or None when HRE mechanics are off."""
    if config.hre == HreMode.NONE:
        return None
    if config.hre == HreMode.CUSTOM:
        return (hre_mapper or HreMapper()).get_hre()
    return HRE_TAGS.get(config.hre, "e_hre")


def shatter_hre(titles: dict[str, Title], hre_tag: str | None, log: logging.Logger = logger) -> dict[str, Title]:
    """Release every HRE member and flag it as such; returns the members.

    Duchies and counties under the empire are members directly. Kingdoms
    are historically over-tier inside the HRE, so apart from the protected
    ones they are always bricked and their own vassals become members.
    """
    if hre_tag is None:
        log.info(">< HRE Mechanics and shattering overridden by configuration.")
        return {}
    hre = titles.get(hre_tag)
    if hre is None:
        log.info("><  HRE shattering cancelled, %s not found!", hre_tag)
        return {}
    if not hre.vassals:
        log.info("><  HRE shattering cancelled, %s has no vassals!", hre_tag)
        return {}

    members: dict[str, Title] = {}
    for tag, vassal in sorted(hre.vassals.items()):
        if tag.startswith((DUCHY, COUNTY)):
            members[tag] = vassal
        elif tag.startswith(KINGDOM):
            if tag in SHATTER_PROTECTED_KINGDOMS:
                members[tag] = vassal
                continue
            members.update(vassal.vassals)
            vassal.brick()
        elif not tag.startswith(BARONY):
            log.warning("Unrecognized HRE vassal: %s", tag)

    emperor_set = False
    for tag, member in sorted(members.items()):
        # The emperor may hold several members; only the first one found carries the flag.
        if not emperor_set and hre.holder is not None and member.holder is hre.holder:
            member.hre_emperor = True
            emperor_set = True
        member.in_hre = True
        member.clear_liege()

    hre.clear_vassals()
    hre.clear_holder()
    log.info("<> %d HRE members released.", len(members))
    return members


# ---------------------------------------------------------------------------
#  Empires
# ---------------------------------------------------------------------------

def shatter_empires(
    titles: dict[str, Title],
    shatter_empires_mode: ShatterEmpires,
    shatter_level: ShatterLevel,
    log: logging.Logger = logger,
) -> int:
    """Break every empire with vassals into its members; returns the number of empires shattered."""
    if shatter_empires_mode == ShatterEmpires.NONE:
        log.info(">< Empire shattering disabled by configuration.")
        return 0

    shatter_kingdoms = shatter_level != ShatterLevel.KINGDOM
    counter = 0
    for empire_tag, empire in sorted(titles.items()):
        if not empire_tag.startswith(EMPIRE) or not empire.vassals:
            continue

        members: dict[str, Title] = {}
        for tag, vassal in sorted(empire.vassals.items()):
            if tag.startswith((DUCHY, COUNTY)):
                members[tag] = vassal
            elif tag.startswith(KINGDOM):
                if shatter_kingdoms and tag not in SHATTER_PROTECTED_KINGDOMS:
                    members.update(vassal.vassals)
                    vassal.brick()
                else:
                    members[tag] = vassal
            else:
                log.warning("Unrecognized vassal level: %s", tag)

        for member in members.values():
            member.clear_liege()

        empire.clear_vassals()
        empire.clear_holder()
        counter += 1
        log.info("<> %s shattered, %d members released.", empire_tag, len(members))
    return counter


# ---------------------------------------------------------------------------
#  Vassal splitting
# ---------------------------------------------------------------------------

def liberation_threshold(total_claim: int, relevant_vassals: int) -> float:
    return total_claim / relevant_vassals + LIBERATION_MARGIN * total_claim


def find_liberated_vassals(title: Title) -> dict[str, Title]:
    """Return the vassals of one independent title that claim too much of its land."""
    if title.tag in SPLIT_PROTECTED_TITLES:
        return {}
    if title.holder is None or title.holder.government in UNSPLITTABLE_GOVERNMENTS:
        return {}
    vassal_tier = SPLIT_VASSAL_TIER.get(title.tier)
    if vassal_tier is None:
        return {}

    relevant = [v for v in title.vassals.values() if v.tag.startswith(vassal_tier)]
    relevant_vassals = sum(1 for v in relevant if v.coalesce_provinces())
    if not relevant_vassals:
        return {}

    threshold = liberation_threshold(len(title.coalesce_provinces()), relevant_vassals)
    liberated: dict[str, Title] = {}
    for vassal in relevant:
        if vassal.holder is None or vassal.holder is title.holder:
            continue
        if len(vassal.coalesce_provinces()) > threshold:
            liberated[vassal.tag] = vassal
    return liberated


def split_vassals(independent_titles: dict[str, Title], log: logging.Logger = logger) -> dict[str, Title]:
    """Liberate oversized vassals into the independent-title set; returns the new independents."""
    new_independents: dict[str, Title] = {}
    for title in independent_titles.values():
        new_independents.update(find_liberated_vassals(title))

    for tag, vassal in sorted(new_independents.items()):
        liege = vassal.liege
        vassal.clear_liege()
        if liege is not None:
            vassal.register_generated_liege(liege)
        independent_titles[tag] = vassal
    log.info("<> %d vassals liberated from immediate integration.", len(new_independents))
    return new_independents
