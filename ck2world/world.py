"""
ck2world/world.py
~~~~~~~~~~~~~~~~~
The working set of one conversion run and the pipeline that transforms it.

``World`` owns every entity table. ``World.build`` runs the stages in
their one valid order; each stage mutates the tables in place and later
stages rely on those side effects, so the order must not change.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ck2world import annotation, linker, personality, recovery, restructuring, sovereignty, succession, territory
from ck2world.config_loader import Configuration, HreMapper
from ck2world.loader import (
    SaveTables,
    build_character,
    build_dynasty,
    build_province,
    build_title,
    load_dynasty_folder,
    load_personalities,
    load_save_tables,
)
from ck2world.models import Character, Dynasty, Offmap, Province, Relation, Title, Wonder
from ck2world.paths import DYNASTIES_SUBDIR, TRAITS_SUBDIR

logger = logging.getLogger(__name__)


class World:
    """All entity tables of a parsed save, plus the independent-title set once classified."""

    def __init__(
        self,
        characters: dict[int, Character] | None = None,
        titles: dict[str, Title] | None = None,
        provinces: dict[int, Province] | None = None,
        dynasties: dict[int, Dynasty] | None = None,
        wonders: dict[int, Wonder] | None = None,
        offmaps: dict[int, Offmap] | None = None,
        relations: list[Relation] | None = None,
        province_titles: dict[str, int] | None = None,
        personalities: dict[int, str] | None = None,
    ) -> None:
        self.characters: dict[int, Character] = characters if characters is not None else {}
        self.titles: dict[str, Title] = titles if titles is not None else {}
        self.provinces: dict[int, Province] = provinces if provinces is not None else {}
        self.dynasties: dict[int, Dynasty] = dynasties if dynasties is not None else {}
        self.wonders: dict[int, Wonder] = wonders if wonders is not None else {}
        self.offmaps: dict[int, Offmap] = offmaps if offmaps is not None else {}
        self.relations: list[Relation] = relations if relations is not None else []
        self.province_titles: dict[str, int] = province_titles if province_titles is not None else {}
        # save trait index -> personality trait name
        self.personalities: dict[int, str] = personalities if personalities is not None else {}
        self.independent_titles: dict[str, Title] = {}

    # ------------------------------------------------------------------
    #  Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_tables(
        cls,
        tables: SaveTables,
        base_dynasties: dict[int, Dynasty] | None = None,
        personalities: dict[int, str] | None = None,
    ) -> World:
        """Build a world from validated save tables; save dynasties override base definitions."""
        dynasties = dict(base_dynasties or {})
        dynasties.update({i: build_dynasty(i, r) for i, r in tables.dynasties.items()})
        return cls(
            characters={i: build_character(i, r) for i, r in tables.characters.items()},
            titles={tag: build_title(tag, r) for tag, r in tables.titles.items()},
            provinces={i: build_province(i, r) for i, r in tables.provinces.items()},
            dynasties=dynasties,
            wonders={i: Wonder(i, r.type, r.province, r.stage, r.active) for i, r in tables.wonders.items()},
            offmaps={i: Offmap(i, r.type, r.name, r.holder) for i, r in tables.offmaps.items()},
            relations=[Relation(r.first, r.second, dict(r.flags)) for r in tables.relations],
            province_titles=dict(tables.province_titles),
            personalities=personalities,
        )

    @classmethod
    def load(cls, save_path: str | Path, ck2_path: str | Path | None = None) -> World:
        """Load vanilla dynasties and traits (if a CK2 install is given) and then the save tables."""
        base_dynasties: dict[int, Dynasty] = {}
        personalities: dict[int, str] = {}
        if ck2_path:
            base_dynasties = load_dynasty_folder(Path(ck2_path) / DYNASTIES_SUBDIR)
            logger.info(">> Loaded %d vanilla dynasties.", len(base_dynasties))
            personalities = load_personalities(Path(ck2_path) / TRAITS_SUBDIR)
            logger.info(">> Loaded %d personality traits.", len(personalities))
        return cls.from_tables(load_save_tables(save_path), base_dynasties, personalities)

    # ------------------------------------------------------------------
    #  Pipeline
    # ------------------------------------------------------------------

    def build(
        self,
        config: Configuration,
        hre_mapper: HreMapper | None = None,
        dynasty_sources: recovery.ModDynastyLoader | list | None = None,
        log: logging.Logger = logger,
    ) -> dict[str, Title]:
        """Run the whole pipeline and return the final independent-title set."""
        log.info("*** Building World ***")
        linker.link_all(self, log)

        if dynasty_sources is None:
            dynasty_sources = recovery.ModDynastyLoader(config.mod_path, log)
        recovery.verify_religions_and_cultures(self.characters, self.dynasties, dynasty_sources, log)

        log.info("-- Merging Independent Baronies")
        restructuring.merge_independent_baronies(self.titles, log)
        log.info("-- Merging Revolts Into Base")
        restructuring.merge_revolts(self.titles, log)
        log.info("-- Shattering HRE")
        restructuring.shatter_hre(self.titles, restructuring.resolve_hre_tag(config, hre_mapper), log)
        log.info("-- Shattering Empires")
        restructuring.shatter_empires(self.titles, config.shatter_empires, config.shatter_level, log)

        log.info("-- Filtering Independent Titles")
        self.independent_titles = sovereignty.filter_independent_titles(self.titles, log)
        log.info("-- Splitting Off Vassals")
        restructuring.split_vassals(self.independent_titles, log)

        log.info("-- Congregating Provinces for Independent Titles")
        territory.congregate_provinces(self.independent_titles, log)
        log.info("-- Performing Province Sanity Check")
        territory.sanity_check_provinces(self.independent_titles, log)
        log.info("-- Filtering Provinceless Titles")
        territory.filter_provinceless_titles(self.independent_titles, log)

        log.info("-- Determining Heirs")
        succession.determine_heirs(self.independent_titles, log)
        log.info("-- Rounding Up Some People")
        annotation.gather_courtier_names(self.characters, self.independent_titles, log)
        log.info("-- Decyphering Personalities")
        personality.assign_personalities(self.characters, self.personalities, log)

        log.info("*** Good-bye CK2, rest in peace. ***")
        return self.independent_titles
