"""
ck2world/loader.py
~~~~~~~~~~~~~~~~~~
Load boundary between the save reader and the builder.

The save reader emits its entity tables as one JSON document; this module
validates every record with pydantic and turns it into the plain records
of ``ck2world.models``. Dynasty definition files (vanilla install or mods)
share the same dynasty record shape.

Any failure here is fatal: a half-loaded world cannot be linked sensibly.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from ck2world.models import (
    Barony,
    Character,
    Dynasty,
    Offmap,
    Province,
    Relation,
    Title,
    Wonder,
    parse_date,
)

logger = logging.getLogger(__name__)


class WorldLoadError(Exception):
    """Raised when the parsed save tables cannot be read or validated."""


# ---------------------------------------------------------------------------
#  Record models
# ---------------------------------------------------------------------------

class DynastyRecord(BaseModel):
    name: str = ""
    culture: str = ""
    religion: str = ""


class CharacterRecord(BaseModel):
    name: str = ""
    female: bool = False
    religion: str = ""
    culture: str = ""
    government: str = ""
    prestige: float = 0.0
    birth_date: str = ""
    death_date: str = ""
    job: str = ""
    host: int | None = None
    traits: list[int] = Field(default_factory=list)
    liege: int | None = None
    spouses: list[int] = Field(default_factory=list)
    mother: int | None = None
    father: int | None = None
    dynasty: int | None = None
    primary_title: str | None = None
    capital: str | None = None


class TitleRecord(BaseModel):
    succession: str = ""
    gender: str = ""
    holder: int | None = None
    previous_holders: list[int] = Field(default_factory=list)
    liege: str | None = None
    de_jure_liege: str | None = None
    base_title: str | None = None
    dynamic: bool = False


class BaronyRecord(BaseModel):
    type: str = ""
    buildings: list[str] = Field(default_factory=list)


class ProvinceRecord(BaseModel):
    name: str = ""
    religion: str = ""
    culture: str = ""
    primary_settlement: str | None = None
    baronies: dict[str, BaronyRecord] = Field(default_factory=dict)


class WonderRecord(BaseModel):
    type: str
    province: int
    stage: int = 0
    active: bool = True


class TraitRecord(BaseModel):
    name: str
    personality: bool = False


class OffmapRecord(BaseModel):
    type: str
    name: str = ""
    holder: int | None = None


class RelationRecord(BaseModel):
    first: int
    second: int
    flags: dict[str, str] = Field(default_factory=dict)


class SaveTables(BaseModel):
    """Full shape of the parsed save document."""

    characters: dict[int, CharacterRecord] = Field(default_factory=dict)
    titles: dict[str, TitleRecord] = Field(default_factory=dict)
    provinces: dict[int, ProvinceRecord] = Field(default_factory=dict)
    dynasties: dict[int, DynastyRecord] = Field(default_factory=dict)
    wonders: dict[int, WonderRecord] = Field(default_factory=dict)
    offmaps: dict[int, OffmapRecord] = Field(default_factory=dict)
    relations: list[RelationRecord] = Field(default_factory=list)
    # county tag -> province id, from the province history files
    province_titles: dict[str, int] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


# ---------------------------------------------------------------------------
#  Converters
# ---------------------------------------------------------------------------

def build_dynasty(dynasty_id: int, record: DynastyRecord) -> Dynasty:
    return Dynasty(dynasty_id, name=record.name, culture=record.culture, religion=record.religion)


def build_character(character_id: int, record: CharacterRecord) -> Character:
    return Character(
        character_id,
        name=record.name,
        female=record.female,
        religion=record.religion,
        culture=record.culture,
        government=record.government,
        prestige=record.prestige,
        birth_date=parse_date(record.birth_date),
        death_date=parse_date(record.death_date),
        job=record.job,
        host_id=record.host,
        liege_id=record.liege,
        spouse_ids=list(record.spouses),
        mother_id=record.mother,
        father_id=record.father,
        dynasty_id=record.dynasty,
        primary_title_tag=record.primary_title,
        capital_tag=record.capital,
        trait_ids=list(record.traits),
    )


def build_title(tag: str, record: TitleRecord) -> Title:
    return Title(
        tag,
        succession_law=record.succession,
        gender_law=record.gender,
        holder_id=record.holder,
        previous_holder_ids=list(record.previous_holders),
        liege_tag=record.liege,
        de_jure_liege_tag=record.de_jure_liege,
        base_title_tag=record.base_title,
        dynamic=record.dynamic,
    )


def build_province(province_id: int, record: ProvinceRecord) -> Province:
    baronies = {
        tag: Barony(tag, barony.type, set(barony.buildings))
        for tag, barony in record.baronies.items()
    }
    return Province(
        province_id,
        name=record.name,
        religion=record.religion,
        culture=record.culture,
        baronies=baronies,
        primary_settlement_tag=record.primary_settlement,
    )


# ---------------------------------------------------------------------------
#  File readers
# ---------------------------------------------------------------------------

def _read_json(path: Path) -> object:
    try:
        with open(path, encoding="utf-8-sig") as f:
            return json.load(f)
    except OSError as exc:
        raise WorldLoadError(f"Could not open {path} for parsing: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise WorldLoadError(f"Corrupt save tables in {path}: {exc}") from exc


def load_save_tables(path: str | Path) -> SaveTables:
    """Read and validate the parsed save document."""
    path = Path(path)
    logger.info("-> Importing CK2 save tables from %s", path)
    data = _read_json(path)
    try:
        tables = SaveTables.model_validate(data)
    except ValidationError as exc:
        raise WorldLoadError(f"Unrecognized save table structure in {path}: {exc}") from exc
    logger.info(
        ">> Loaded %d characters, %d titles, %d provinces, %d dynasties.",
        len(tables.characters),
        len(tables.titles),
        len(tables.provinces),
        len(tables.dynasties),
    )
    return tables


def load_dynasty_file(path: str | Path) -> dict[int, Dynasty]:
    """Read one dynasty definition file (``{id: {name, culture, religion}}``)."""
    path = Path(path)
    data = _read_json(path)
    if not isinstance(data, dict):
        raise WorldLoadError(f"Dynasty file {path} must contain a JSON object.")
    try:
        records = {int(key): DynastyRecord.model_validate(value) for key, value in data.items()}
    except (ValueError, ValidationError) as exc:
        raise WorldLoadError(f"Invalid dynasty definitions in {path}: {exc}") from exc
    return {dynasty_id: build_dynasty(dynasty_id, record) for dynasty_id, record in records.items()}


def load_dynasty_folder(folder: str | Path) -> dict[int, Dynasty]:
    """Read every ``*.json`` dynasty file in a folder, in name order; later files win."""
    folder = Path(folder)
    dynasties: dict[int, Dynasty] = {}
    if not folder.is_dir():
        logger.warning("Dynasty folder '%s' not found.", folder)
        return dynasties
    for file_path in sorted(folder.glob("*.json")):
        dynasties.update(load_dynasty_file(file_path))
    return dynasties


def load_trait_file(path: str | Path) -> list[TraitRecord]:
    """Read one trait definition file: a JSON list of ``{name, personality}`` in game order."""
    path = Path(path)
    data = _read_json(path)
    if not isinstance(data, list):
        raise WorldLoadError(f"Trait file {path} must contain a JSON list.")
    try:
        return [TraitRecord.model_validate(entry) for entry in data]
    except ValidationError as exc:
        raise WorldLoadError(f"Invalid trait definitions in {path}: {exc}") from exc


def load_personalities(folder: str | Path) -> dict[int, str]:
    """Map save trait indices to personality trait names.

    The save refers to traits by their 1-based position across every trait
    file in name order, so non-personality traits still consume an index.
    """
    folder = Path(folder)
    personalities: dict[int, str] = {}
    if not folder.is_dir():
        logger.warning("Trait folder '%s' not found.", folder)
        return personalities
    index = 0
    for file_path in sorted(folder.glob("*.json")):
        for trait in load_trait_file(file_path):
            index += 1
            if trait.personality:
                personalities[index] = trait.name
    return personalities
