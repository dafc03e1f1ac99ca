"""
ck2world/models.py
~~~~~~~~~~~~~~~~~~
In-memory entity records for a parsed CK2 save.

Every record is created holding only raw references (character IDs, title
tags, barony tags) as they appear in the save. The linker later resolves
those into direct object references. Tables in ``ck2world.world.World``
are the single owners of every record; the object references stored on
records are shared back-references, never copies.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Dates
# ---------------------------------------------------------------------------

Date = tuple[int, int, int]

# CK2 writes 1.1.1 for "never happened"; a character with this death date is alive.
NULL_DATE: Date = (1, 1, 1)


def parse_date(value: str | None) -> Date:
    """Parse a ``YYYY.M.D`` save date into a sortable tuple; blanks become NULL_DATE."""
    if not value:
        return NULL_DATE
    parts = value.strip().strip('"').split(".")
    try:
        year, month, day = (int(p) for p in (parts + ["1", "1"])[:3])
    except ValueError:
        logger.warning("Unparseable date '%s', treating as null date.", value)
        return NULL_DATE
    return (year, month, day)


def format_date(value: Date) -> str:
    return f"{value[0]}.{value[1]}.{value[2]}"


# ---------------------------------------------------------------------------
#  Tiers
# ---------------------------------------------------------------------------

EMPIRE, KINGDOM, DUCHY, COUNTY, BARONY = "e_", "k_", "d_", "c_", "b_"
TIER_PREFIXES = (EMPIRE, KINGDOM, DUCHY, COUNTY, BARONY)


def tier_of(tag: str) -> str | None:
    """Return the tier prefix of a title tag, or None for unranked tags."""
    for prefix in TIER_PREFIXES:
        if tag.startswith(prefix):
            return prefix
    return None


# ---------------------------------------------------------------------------
#  Leaf records
# ---------------------------------------------------------------------------

class Dynasty:
    """A dynasty definition; feeds culture and religion to members missing them."""

    def __init__(self, dynasty_id: int, name: str = "", culture: str = "", religion: str = "") -> None:
        self.id = dynasty_id
        self.name = name
        self.culture = culture
        self.religion = religion

    def __repr__(self) -> str:
        return f"<Dynasty {self.name} ({self.id})>"


class Barony:
    """A holding inside a province. Buildings are opaque to the builder."""

    def __init__(self, tag: str, holding_type: str = "", buildings: set[str] | None = None) -> None:
        self.tag = tag
        self.type = holding_type
        self.buildings: set[str] = buildings or set()

    def __repr__(self) -> str:
        return f"<Barony {self.tag}>"


class Wonder:
    def __init__(
        self,
        wonder_id: int,
        wonder_type: str,
        province_id: int,
        stage: int = 0,
        active: bool = True,
    ) -> None:
        self.id = wonder_id
        self.type = wonder_type
        self.province_id = province_id
        self.stage = stage
        self.active = active

    def __repr__(self) -> str:
        return f"<Wonder {self.type} ({self.id}) @ {self.province_id}>"


class Relation:
    """A personal diplomacy record between two characters, carried through unchanged."""

    def __init__(self, first: int, second: int, flags: dict[str, str] | None = None) -> None:
        self.first = first
        self.second = second
        self.flags: dict[str, str] = flags or {}

    def __repr__(self) -> str:
        return f"<Relation {self.first} <-> {self.second}>"


# ---------------------------------------------------------------------------
#  Characters
# ---------------------------------------------------------------------------

class Character:
    """A save-game character plus the links and annotations added by the builder."""

    def __init__(
        self,
        character_id: int,
        name: str = "",
        female: bool = False,
        religion: str = "",
        culture: str = "",
        government: str = "",
        prestige: float = 0.0,
        birth_date: Date = NULL_DATE,
        death_date: Date = NULL_DATE,
        job: str = "",
        host_id: int | None = None,
        liege_id: int | None = None,
        spouse_ids: list[int] | None = None,
        mother_id: int | None = None,
        father_id: int | None = None,
        dynasty_id: int | None = None,
        primary_title_tag: str | None = None,
        capital_tag: str | None = None,
        trait_ids: list[int] | None = None,
    ) -> None:
        self.id = character_id
        self.name = name
        self.female = female
        self.religion = religion
        self.culture = culture
        self.government = government
        self.prestige = prestige
        self.birth_date = birth_date
        self.death_date = death_date
        self.job = job
        self.host_id = host_id

        # Raw references, as parsed
        self.liege_id = liege_id
        self.spouse_ids: list[int] = spouse_ids or []
        self.mother_id = mother_id
        self.father_id = father_id
        self.dynasty_id = dynasty_id
        self.primary_title_tag = primary_title_tag
        self.capital_tag = capital_tag
        self.trait_ids: list[int] = trait_ids or []

        # Linked references
        self.liege: Character | None = None
        self.spouses: dict[int, Character] = {}
        self.mother: Character | None = None
        self.father: Character | None = None
        self.children: dict[int, Character] = {}
        self.dynasty: Dynasty | None = None
        self.primary_title: Title | None = None
        self.capital: Province | None = None

        # Annotations
        self.heir: Character | None = None
        self.courtier_names: dict[str, bool] = {}
        self.advisers: dict[int, Character] = {}
        self.personalities: list[str] = []

    @property
    def is_alive(self) -> bool:
        return self.death_date == NULL_DATE

    def living_children(self) -> list[Character]:
        return [child for child in self.children.values() if child.is_alive]

    def add_years(self, years: int) -> None:
        """Age the character by pushing the birth date back; unknown birth dates stay unknown."""
        if self.birth_date == NULL_DATE:
            return
        year, month, day = self.birth_date
        self.birth_date = (year - years, month, day)

    def __repr__(self) -> str:
        return f"<Character {self.name} ({self.id})>"


# ---------------------------------------------------------------------------
#  Provinces
# ---------------------------------------------------------------------------

class Province:
    def __init__(
        self,
        province_id: int,
        name: str = "",
        religion: str = "",
        culture: str = "",
        baronies: dict[str, Barony] | None = None,
        primary_settlement_tag: str | None = None,
    ) -> None:
        self.id = province_id
        self.name = name
        self.religion = religion
        self.culture = culture
        self.baronies: dict[str, Barony] = baronies or {}
        self.primary_settlement_tag = primary_settlement_tag

        self.primary_settlement: Barony | None = None
        self.wonder: Wonder | None = None
        self.holding_title: Title | None = None

    def __repr__(self) -> str:
        return f"<Province {self.name} ({self.id})>"


# ---------------------------------------------------------------------------
#  Titles
# ---------------------------------------------------------------------------

class Title:
    """A landed or titular title and its position in the feudal graph."""

    def __init__(
        self,
        tag: str,
        succession_law: str = "",
        gender_law: str = "",
        holder_id: int | None = None,
        previous_holder_ids: list[int] | None = None,
        liege_tag: str | None = None,
        de_jure_liege_tag: str | None = None,
        base_title_tag: str | None = None,
        dynamic: bool = False,
    ) -> None:
        self.tag = tag
        self.succession_law = succession_law
        self.gender_law = gender_law
        self.dynamic = dynamic

        # Raw references, as parsed
        self.holder_id = holder_id
        self.previous_holder_ids: list[int] = previous_holder_ids or []
        self.liege_tag = liege_tag
        self.de_jure_liege_tag = de_jure_liege_tag
        self.base_title_tag = base_title_tag

        # Linked references
        self.holder: Character | None = None
        self.previous_holders: list[Character] = []
        self.liege: Title | None = None
        self.de_jure_liege: Title | None = None
        self.vassals: dict[str, Title] = {}
        self.de_jure_vassals: dict[str, Title] = {}
        self.base_title: Title | None = None
        self.provinces: dict[int, Province] = {}

        # Restructuring annotations
        self.in_hre = False
        self.hre_emperor = False
        self.generated_liege: Title | None = None
        self.generated_vassals: dict[str, Title] = {}

    @property
    def tier(self) -> str | None:
        return tier_of(self.tag)

    # ------------------------------------------------------------------
    #  Graph mutation
    # ------------------------------------------------------------------

    def set_liege(self, liege: Title) -> None:
        """Attach under a new liege, detaching from any previous one first."""
        self.clear_liege()
        self.liege = liege
        self.liege_tag = liege.tag
        liege.vassals[self.tag] = self

    def clear_liege(self) -> None:
        if self.liege is not None:
            self.liege.vassals.pop(self.tag, None)
        self.liege = None
        self.liege_tag = None

    def clear_vassals(self) -> None:
        for vassal in list(self.vassals.values()):
            vassal.clear_liege()
        self.vassals.clear()

    def clear_holder(self) -> None:
        self.holder = None
        self.holder_id = None

    def brick(self) -> None:
        """Strip vassals, holder and liege, leaving an inert husk."""
        self.clear_vassals()
        self.clear_holder()
        self.clear_liege()

    def override_liege(self) -> bool:
        """Adopt the de-jure liege as the actual liege. Returns False without one."""
        if self.de_jure_liege is None:
            return False
        self.set_liege(self.de_jure_liege)
        return True

    def register_generated_liege(self, liege: Title) -> None:
        self.generated_liege = liege
        liege.generated_vassals[self.tag] = self

    # ------------------------------------------------------------------
    #  Territory
    # ------------------------------------------------------------------

    def coalesce_provinces(self) -> dict[int, Province]:
        """Return own provinces plus those of the whole live vassal tree."""
        collected = dict(self.provinces)
        for vassal in self.vassals.values():
            collected.update(vassal.coalesce_provinces())
        return collected

    def congregate_provinces(self, independent_titles: dict[str, Title]) -> None:
        """Merge the vassal tree's provinces into our own set, leaving independent vassals alone."""
        for vassal in self.vassals.values():
            if vassal.tag in independent_titles:
                continue
            vassal.congregate_provinces(independent_titles)
            self.provinces.update(vassal.provinces)

    def __repr__(self) -> str:
        return f"<Title {self.tag}>"


# ---------------------------------------------------------------------------
#  Offmaps
# ---------------------------------------------------------------------------

CHINA_OFFMAP_TYPE = "offmap_china"


class Offmap:
    """An offmap power; only the celestial empire is linked to a holder."""

    def __init__(self, offmap_id: int, offmap_type: str, name: str = "", holder_id: int | None = None) -> None:
        self.id = offmap_id
        self.type = offmap_type
        self.name = name
        self.holder_id = holder_id
        self.holder: Character | None = None

    def __repr__(self) -> str:
        return f"<Offmap {self.type} ({self.id})>"
