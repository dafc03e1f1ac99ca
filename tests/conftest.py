"""
Pytest configuration and shared builders.
"""

import pytest

from ck2world.config_loader import Configuration
from ck2world.linker import link_all
from ck2world.loader import SaveTables
from ck2world.models import Character, Province, Title
from ck2world.world import World


# =============================================================================
# GRAPH BUILDERS
# =============================================================================

def make_character(character_id, name=None, government="feudal_government", **kwargs):
    return Character(character_id, name=name or f"Char{character_id}", government=government, **kwargs)


def make_title(tag, holder=None, liege=None, provinces=(), **kwargs):
    """A title wired up by hand, as the linker would leave it."""
    title = Title(tag, holder_id=holder.id if holder else None, **kwargs)
    title.holder = holder
    if liege is not None:
        title.set_liege(liege)
    for province_id in provinces:
        title.provinces[province_id] = Province(province_id)
    return title


def make_counties(liege, holder, first_id, count):
    """Hang `count` one-province counties under `liege`."""
    return [
        make_title(f"c_{liege.tag}_{i}", holder=holder, liege=liege, provinces=[first_id + i])
        for i in range(count)
    ]


def linked_world(data):
    """Validate raw save tables, build a world and run the linker over it."""
    world = World.from_tables(SaveTables.model_validate(data))
    link_all(world)
    return world


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def config():
    return Configuration()


@pytest.fixture
def small_save():
    """A little Europe: an HRE with a kingdom, the Pope, a landless mercenary and France."""
    return {
        "dynasties": {
            "1": {"name": "Capet", "culture": "frankish", "religion": "catholic"},
            "2": {"name": "Premyslid", "culture": "bohemian", "religion": "catholic"},
        },
        "characters": {
            "100": {"name": "Philippe", "dynasty": 1, "government": "feudal_government", "host": 100},
            "101": {"name": "Louis", "dynasty": 1, "father": 100, "host": 100, "job": "job_chancellor"},
            "102": {"name": "Louis", "dynasty": 1, "father": 100, "host": 100},
            "103": {"name": "Adele", "female": True, "dynasty": 1, "father": 100, "host": 100},
            "200": {"name": "Heinrich", "culture": "german", "religion": "catholic", "government": "feudal_government"},
            "201": {"name": "Vratislav", "dynasty": 2, "government": "feudal_government"},
            "300": {"name": "Gregory", "culture": "italian", "religion": "catholic", "government": "theocracy_government"},
            "400": {"name": "Hawkwood", "culture": "english", "religion": "catholic", "government": "feudal_government"},
        },
        "titles": {
            "k_france": {"holder": 100, "succession": "primogeniture", "gender": "agnatic"},
            "d_ile_de_france": {"holder": 100, "liege": "k_france", "de_jure_liege": "k_france"},
            "c_paris": {"holder": 100, "liege": "d_ile_de_france", "de_jure_liege": "d_ile_de_france"},
            "c_orleans": {"holder": 100, "liege": "d_ile_de_france", "de_jure_liege": "d_ile_de_france"},
            "e_hre": {"holder": 200, "succession": "elective_gavelkind", "gender": "agnatic"},
            "d_bavaria": {"holder": 200, "liege": "e_hre"},
            "c_munich": {"holder": 200, "liege": "d_bavaria"},
            "k_bohemia": {"holder": 201, "liege": "e_hre"},
            "d_bohemia": {"holder": 201, "liege": "k_bohemia"},
            "c_praha": {"holder": 201, "liege": "d_bohemia"},
            "k_papal_state": {"holder": 300, "liege": "e_hre", "succession": "papal_succession"},
            "d_latium": {"holder": 300, "liege": "k_papal_state"},
            "c_roma": {"holder": 300, "liege": "d_latium"},
            "d_white_company": {"holder": 400},
        },
        "provinces": {
            "1": {"name": "Paris", "baronies": {"b_paris": {"type": "castle"}}, "primary_settlement": "b_paris"},
            "2": {"name": "Orleans"},
            "3": {"name": "Munich"},
            "4": {"name": "Praha"},
            "5": {"name": "Roma"},
        },
        "province_titles": {"c_paris": 1, "c_orleans": 2, "c_munich": 3, "c_praha": 4, "c_roma": 5},
    }
