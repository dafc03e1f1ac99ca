from conftest import make_character, make_title

from ck2world.annotation import collect_courts, gather_courtier_names
from ck2world.models import Character


def court():
    ruler = make_character(1)
    vassal_lord = make_character(2)
    characters = {
        1: ruler,
        2: vassal_lord,
        10: Character(10, name="Otto", host_id=1),
        11: Character(11, name="Matilda", female=True, host_id=1, job="job_spymaster"),
        12: Character(12, name="Otto", female=True, host_id=1),
        20: Character(20, name="Konrad", host_id=2, job="job_marshal"),
        30: Character(30, name="Wanderer"),
    }
    return characters, ruler, vassal_lord


def test_collect_courts_groups_by_host():
    characters, _, _ = court()
    names, advisers = collect_courts(characters)

    assert names[1] == {"Otto": True, "Matilda": False}
    assert set(advisers[1]) == {11}
    assert set(advisers[2]) == {20}
    assert 30 not in names


def test_only_independent_rulers_are_annotated():
    characters, ruler, vassal_lord = court()
    independents = {"k_a": make_title("k_a", holder=ruler)}

    assert gather_courtier_names(characters, independents) == (2, 1)
    assert ruler.courtier_names == {"Otto": True, "Matilda": False}
    assert ruler.advisers == {11: characters[11]}
    assert vassal_lord.courtier_names == {} and vassal_lord.advisers == {}


def test_annotation_leaves_relationships_alone():
    characters, ruler, _ = court()
    title = make_title("k_a", holder=ruler)
    gather_courtier_names(characters, {"k_a": title})

    assert title.holder is ruler
    assert characters[10].liege is None
    assert ruler.children == {}
