import logging
import math

import pytest
from conftest import make_character, make_counties, make_title

from ck2world.config_loader import Configuration, HreMapper, HreMode, ShatterEmpires, ShatterLevel
from ck2world.restructuring import (
    liberation_threshold,
    merge_independent_baronies,
    merge_revolts,
    resolve_hre_tag,
    shatter_empires,
    shatter_hre,
    split_vassals,
)


def as_table(*titles):
    return {t.tag: t for t in titles}


# =============================================================================
# BARONIES AND REVOLTS
# =============================================================================

def test_independent_barony_goes_back_under_its_county():
    county = make_title("c_a", holder=make_character(1))
    barony = make_title("b_a", holder=make_character(2))
    barony.de_jure_liege = county
    stray = make_title("b_b", holder=make_character(3))
    stray.de_jure_liege = make_title("d_x")

    assert merge_independent_baronies(as_table(county, barony, stray)) == 1
    assert barony.liege is county
    assert county.vassals["b_a"] is barony
    assert stray.liege is None


def test_revolt_merges_into_base_and_is_idempotent():
    rebel = make_character(5)
    base = make_title("k_a", holder=make_character(1))
    revolt = make_title("k_a_rebels_1", holder=rebel, provinces=[7], dynamic=True)
    revolt.base_title = base
    duchy = make_title("d_a", holder=rebel, liege=revolt)
    titles = as_table(base, revolt, duchy)

    assert merge_revolts(titles) == 1
    assert duchy.liege is base
    assert 7 in base.provinces
    assert revolt.holder is None and not revolt.vassals and not revolt.provinces
    assert merge_revolts(titles) == 0


def test_no_revolts_is_a_noop():
    titles = as_table(make_title("k_a", holder=make_character(1)))
    assert merge_revolts(titles) == 0


# =============================================================================
# HRE
# =============================================================================

@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (HreMode.NONE, None),
        (HreMode.HRE, "e_hre"),
        (HreMode.BYZANTIUM, "e_byzantium"),
        (HreMode.ROME, "e_roman_empire"),
    ],
)
def test_resolve_hre_tag(mode, expected):
    assert resolve_hre_tag(Configuration(hre=mode)) == expected


def test_resolve_custom_hre_tag(tmp_path):
    mapping = tmp_path / "i_am_hre.json"
    mapping.write_text('{"hre": "e_persia"}', encoding="utf-8")
    assert resolve_hre_tag(Configuration(hre=HreMode.CUSTOM), HreMapper(mapping)) == "e_persia"


@pytest.fixture
def hre():
    emperor = make_character(1)
    empire = make_title("e_hre", holder=emperor)
    pope = make_character(2)
    papal = make_title("k_papal_state", holder=pope, liege=empire)
    latium = make_title("d_latium", holder=pope, liege=papal)
    bohemia = make_title("k_bohemia", holder=make_character(3), liege=empire)
    duchy_a = make_title("d_a", holder=make_character(4), liege=bohemia)
    duchy_b = make_title("d_b", holder=emperor, liege=bohemia)
    austria = make_title("d_austria", holder=emperor, liege=empire)
    barony = make_title("b_free", holder=make_character(5), liege=empire)
    return as_table(empire, papal, latium, bohemia, duchy_a, duchy_b, austria, barony)


def test_shatter_hre_keeps_papal_state_and_bricks_other_kingdoms(hre):
    members = shatter_hre(hre, "e_hre")

    papal = hre["k_papal_state"]
    assert papal.liege is None
    assert papal.in_hre
    assert papal.vassals == {"d_latium": hre["d_latium"]}
    assert papal.holder is not None

    bohemia = hre["k_bohemia"]
    assert bohemia.vassals == {} and bohemia.holder is None and bohemia.liege is None
    for tag in ("d_a", "d_b"):
        assert tag in members
        assert hre[tag].liege is None
        assert hre[tag].in_hre

    assert "b_free" not in members
    assert hre["e_hre"].vassals == {} and hre["e_hre"].holder is None


def test_shatter_hre_flags_exactly_one_emperor(hre):
    shatter_hre(hre, "e_hre")
    emperors = [tag for tag, title in hre.items() if title.hre_emperor]
    # Both d_austria and d_b belong to the emperor; the first by tag wins.
    assert emperors == ["d_austria"]


def test_shatter_hre_disabled_or_missing(hre, caplog):
    with caplog.at_level(logging.INFO):
        assert shatter_hre(hre, None) == {}
        assert shatter_hre(hre, "e_byzantium") == {}
    assert hre["k_bohemia"].liege is hre["e_hre"]
    assert "not found" in caplog.text


def test_shatter_hre_warns_on_unknown_tier(caplog):
    empire = make_title("e_hre", holder=make_character(1))
    make_title("x_weird", liege=empire)
    with caplog.at_level(logging.WARNING):
        shatter_hre(as_table(empire), "e_hre")
    assert "Unrecognized HRE vassal: x_weird" in caplog.text


# =============================================================================
# EMPIRES
# =============================================================================

@pytest.fixture
def empire():
    emperor = make_character(1)
    byzantium = make_title("e_byzantium", holder=emperor)
    greece = make_title("k_greece", holder=make_character(2), liege=byzantium)
    athens = make_title("d_athens", holder=make_character(3), liege=greece)
    orthodox = make_title("k_orthodox", holder=make_character(4), liege=byzantium)
    thrace = make_title("d_thrace", holder=emperor, liege=byzantium)
    return as_table(byzantium, greece, athens, orthodox, thrace)


def test_shatter_empires_disabled(empire):
    assert shatter_empires(empire, ShatterEmpires.NONE, ShatterLevel.DUCHY) == 0
    assert empire["k_greece"].liege is empire["e_byzantium"]


def test_shatter_empires_to_kingdom_level(empire):
    assert shatter_empires(empire, ShatterEmpires.ALL, ShatterLevel.KINGDOM) == 1
    greece = empire["k_greece"]
    assert greece.liege is None
    assert greece.vassals == {"d_athens": empire["d_athens"]}
    assert empire["d_thrace"].liege is None
    assert empire["e_byzantium"].vassals == {} and empire["e_byzantium"].holder is None


def test_shatter_empires_to_duchy_level(empire):
    shatter_empires(empire, ShatterEmpires.ALL, ShatterLevel.DUCHY)
    greece = empire["k_greece"]
    assert greece.vassals == {} and greece.holder is None and greece.liege is None
    assert empire["d_athens"].liege is None
    # Protected kingdom stays whole but loose.
    orthodox = empire["k_orthodox"]
    assert orthodox.holder is not None and orthodox.liege is None


def test_shatter_empires_warns_on_unknown_tier(caplog):
    empire = make_title("e_a", holder=make_character(1))
    make_title("x_odd", liege=empire)
    with caplog.at_level(logging.WARNING):
        shatter_empires(as_table(empire), ShatterEmpires.ALL, ShatterLevel.DUCHY)
    assert "Unrecognized vassal level: x_odd" in caplog.text


# =============================================================================
# VASSAL SPLITTING
# =============================================================================

def kingdom_with_duchies(big, small, big_holder_differs=True, government="feudal_government"):
    king = make_character(1, government=government)
    kingdom = make_title("k_a", holder=king)
    big_duchy = make_title("d_big", holder=make_character(2) if big_holder_differs else king, liege=kingdom)
    small_duchy = make_title("d_small", holder=king, liege=kingdom)
    make_counties(big_duchy, big_duchy.holder, 100, big)
    make_counties(small_duchy, king, 500, small)
    return kingdom, big_duchy


def test_liberation_threshold_formula():
    assert liberation_threshold(20, 2) == pytest.approx(12.0)
    assert liberation_threshold(30, 4) == pytest.approx(10.5)


def test_vassal_at_threshold_stays():
    kingdom, big = kingdom_with_duchies(12, 8)
    assert math.floor(liberation_threshold(20, 2)) == 12
    independents = {"k_a": kingdom}

    assert split_vassals(independents) == {}
    assert big.liege is kingdom


def test_vassal_over_threshold_is_liberated():
    kingdom, big = kingdom_with_duchies(13, 7)
    independents = {"k_a": kingdom}

    liberated = split_vassals(independents)
    assert liberated == {"d_big": big}
    assert big.liege is None
    assert big.generated_liege is kingdom
    assert kingdom.generated_vassals == {"d_big": big}
    assert "d_big" not in kingdom.vassals
    assert independents["d_big"] is big


def test_own_land_is_never_split():
    kingdom, big = kingdom_with_duchies(13, 7, big_holder_differs=False)
    assert split_vassals({"k_a": kingdom}) == {}


@pytest.mark.parametrize("government", ["tribal_government", "nomadic_government"])
def test_tribes_and_hordes_are_not_split(government):
    kingdom, _ = kingdom_with_duchies(13, 7, government=government)
    assert split_vassals({"k_a": kingdom}) == {}


def test_protected_titles_are_not_split():
    pope = make_character(1)
    papal = make_title("k_papal_state", holder=pope)
    duchy = make_title("d_big", holder=make_character(2), liege=papal)
    make_counties(duchy, duchy.holder, 1, 10)
    assert split_vassals({"k_papal_state": papal}) == {}


def test_counties_are_never_split():
    duke = make_character(1)
    duchy = make_title("d_a", holder=duke)
    make_counties(duchy, make_character(2), 1, 5)
    assert split_vassals({"d_a": duchy}) == {}


def test_landless_and_off_tier_vassals_do_not_lower_the_threshold():
    kingdom, big = kingdom_with_duchies(12, 8)
    make_title("d_landless", holder=make_character(3), liege=kingdom)
    make_title("c_direct", holder=make_character(4), liege=kingdom, provinces=[900])

    # 21 provinces over two land-holding duchies: 21 / 2 + 2.1 = 12.6
    assert split_vassals({"k_a": kingdom}) == {}
    assert big.liege is kingdom


def test_empire_splits_off_kingdoms():
    emperor = make_character(1)
    empire = make_title("e_a", holder=emperor)
    big = make_title("k_big", holder=make_character(2), liege=empire)
    small = make_title("k_small", holder=emperor, liege=empire)
    direct = make_title("d_direct", holder=make_character(3), liege=empire)
    make_counties(big, big.holder, 100, 13)
    make_counties(small, emperor, 500, 7)
    make_counties(direct, direct.holder, 900, 1)
    independents = {"e_a": empire}

    assert split_vassals(independents) == {"k_big": big}
    assert big.generated_liege is empire
    assert direct.liege is empire
    assert not set(big.coalesce_provinces()) & set(empire.coalesce_provinces())
    assert len(empire.coalesce_provinces()) == 8
