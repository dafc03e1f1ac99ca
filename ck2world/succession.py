"""
ck2world/succession.py
~~~~~~~~~~~~~~~~~~~~~~
Picks an heir for the holder of every independent title.

Heirs are chosen among the holder's living children only; the strategy is
selected from the title's succession law and narrowed by its gender law.
Character IDs stand in for birth order: the save generator hands out
higher IDs to younger characters, so sorting by ID sorts by age.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

from ck2world.models import Character, Title

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Enums
# ---------------------------------------------------------------------------

class SuccessionLaw(Enum):
    """Succession laws with a supported heir strategy."""
    PRIMOGENITURE = "primogeniture"
    ELECTIVE_GAVELKIND = "elective_gavelkind"
    GAVELKIND = "gavelkind"
    NOMAD_SUCCESSION = "nomad_succession"
    ULTIMOGENITURE = "ultimogeniture"
    TANISTRY = "tanistry"
    ELDERSHIP = "eldership"
    TURKISH_SUCCESSION = "turkish_succession"


class GenderLaw(Enum):
    AGNATIC = "agnatic"
    COGNATIC = "cognatic"
    TRUE_COGNATIC = "true_cognatic"


# Tanistry and eldership pick an unknown uncle or aunt; an aged-up child stands in.
TANISTRY_AGE_OFFSET = 35


# ---------------------------------------------------------------------------
#  Strategies
# ---------------------------------------------------------------------------

def _pick_candidates(children: list[Character], youngest_first: bool) -> tuple[Character | None, Character | None]:
    """Return the best (son, daughter) pair among living children in ID order."""
    son: Character | None = None
    daughter: Character | None = None
    for child in sorted(children, key=lambda c: c.id, reverse=youngest_first):
        if not child.is_alive:
            continue
        if child.female:
            # Twins can be recorded with reversed IDs, so the next ID up takes over.
            if daughter is None or daughter.id == child.id - 1:
                daughter = child
        elif son is None or son.id == child.id - 1:
            son = child
    return son, daughter


def _resolve_gender(
    son: Character | None,
    daughter: Character | None,
    gender_law: str,
    twin_correction: bool,
) -> Character | None:
    if gender_law in (GenderLaw.AGNATIC.value, GenderLaw.COGNATIC.value) and son is not None:
        return son
    if gender_law == GenderLaw.COGNATIC.value and daughter is not None:
        return daughter
    if gender_law != GenderLaw.TRUE_COGNATIC.value:
        return None
    if son is None or daughter is None:
        return son or daughter

    heir = son if son.id < daughter.id else daughter
    if twin_correction:
        if son.id == daughter.id - 1:
            heir = daughter
        if daughter.id == son.id - 1:
            heir = son
    return heir


def resolve_primogeniture(holder: Character, gender_law: str) -> Character | None:
    son, daughter = _pick_candidates(holder.living_children(), youngest_first=False)
    return _resolve_gender(son, daughter, gender_law, twin_correction=True)


def resolve_ultimogeniture(holder: Character, gender_law: str) -> Character | None:
    # No twin correction for true cognatic here; see DESIGN.md.
    son, daughter = _pick_candidates(holder.living_children(), youngest_first=True)
    return _resolve_gender(son, daughter, gender_law, twin_correction=False)


def resolve_tanistry(holder: Character, gender_law: str) -> Character | None:
    heir = resolve_primogeniture(holder, gender_law)
    if heir is not None:
        heir.add_years(TANISTRY_AGE_OFFSET)
    return heir


def _round_prestige(prestige: float) -> int:
    """Round half away from zero."""
    return int(math.copysign(math.floor(abs(prestige) + 0.5), prestige))


def resolve_turkish(holder: Character) -> Character | None:
    """The living child with the most prestige; equal prestige goes to the lower ID."""
    ranked = sorted(holder.living_children(), key=lambda c: (-_round_prestige(c.prestige), c.id))
    return ranked[0] if ranked else None


# ---------------------------------------------------------------------------
#  Dispatch
# ---------------------------------------------------------------------------

_PRIMOGENITURE_LAWS = {
    SuccessionLaw.PRIMOGENITURE,
    SuccessionLaw.ELECTIVE_GAVELKIND,
    SuccessionLaw.GAVELKIND,
    SuccessionLaw.NOMAD_SUCCESSION,
}
_TANISTRY_LAWS = {SuccessionLaw.TANISTRY, SuccessionLaw.ELDERSHIP}


def determine_heir(title: Title) -> Character | None:
    """Compute and record the heir for one title's holder. Unsupported laws yield no heir."""
    holder = title.holder
    if holder is None:
        return None
    try:
        law = SuccessionLaw(title.succession_law)
    except ValueError:
        return None

    if law in _PRIMOGENITURE_LAWS:
        heir = resolve_primogeniture(holder, title.gender_law)
    elif law == SuccessionLaw.ULTIMOGENITURE:
        heir = resolve_ultimogeniture(holder, title.gender_law)
    elif law in _TANISTRY_LAWS:
        heir = resolve_tanistry(holder, title.gender_law)
    else:
        heir = resolve_turkish(holder)

    if heir is not None:
        holder.heir = heir
    return heir


def determine_heirs(independent_titles: dict[str, Title], log: logging.Logger = logger) -> int:
    counter = 0
    for title in independent_titles.values():
        heir = determine_heir(title)
        if heir is not None:
            counter += 1
            log.debug("Heir of %s (%s): %s", title.tag, title.holder, heir)
    log.info("<> Heirs resolved where possible: %d of %d.", counter, len(independent_titles))
    return counter
