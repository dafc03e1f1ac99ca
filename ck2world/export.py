"""
ck2world/export.py
~~~~~~~~~~~~~~~~~~
Hands the built world over to downstream exporters.

Two artefacts are produced: a JSON summary of every independent title
(holder, heir, provinces, HRE flags, court) and an optional graphviz map
of the independent realms with the vassals they released.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import graphviz

from ck2world.models import Character, Title, format_date
from ck2world.world import World

logger = logging.getLogger(__name__)

TIER_COLORS = {
    "e_": "#C9A227",
    "k_": "#A0C878",
    "d_": "#8FB8DE",
    "c_": "#E8E8E8",
    "b_": "#FFFFFF",
}


def _character_summary(character: Character | None) -> dict | None:
    if character is None:
        return None
    return {
        "id": character.id,
        "name": character.name,
        "female": character.female,
        "culture": character.culture,
        "religion": character.religion,
        "dynasty": character.dynasty.name if character.dynasty else None,
        "birth_date": format_date(character.birth_date),
        "personalities": list(character.personalities),
    }


def title_summary(title: Title) -> dict:
    holder = title.holder
    return {
        "tag": title.tag,
        "holder": _character_summary(holder),
        "heir": _character_summary(holder.heir if holder else None),
        "provinces": sorted(title.provinces),
        "in_hre": title.in_hre,
        "hre_emperor": title.hre_emperor,
        "generated_liege": title.generated_liege.tag if title.generated_liege else None,
        "courtier_names": dict(holder.courtier_names) if holder else {},
        "advisers": sorted(holder.advisers) if holder else [],
    }


def world_summary(world: World) -> dict:
    return {
        "independent_titles": {tag: title_summary(t) for tag, t in sorted(world.independent_titles.items())},
        "province_owners": {
            province_id: province.holding_title.tag
            for province_id, province in sorted(world.provinces.items())
            if province.holding_title is not None
        },
    }


def write_summary(world: World, output_dir: str | Path) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "world.json"
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(world_summary(world), f, indent=4, ensure_ascii=False)
    logger.info("World summary exported to %s.", output_path)
    return output_path


def build_realm_graph(world: World) -> graphviz.Digraph:
    """Independent realms as nodes, dashed edges from former lieges to liberated vassals."""
    graph = graphviz.Digraph(comment="Independent Realms", graph_attr={"rankdir": "LR"})
    for tag, title in sorted(world.independent_titles.items()):
        holder = title.holder.name if title.holder else "?"
        label = f"{tag}\\n{holder}\\n{len(title.provinces)} provinces"
        graph.node(
            tag,
            label=label,
            shape="box",
            style="filled",
            fillcolor=TIER_COLORS.get(title.tier or "", "white"),
            penwidth="3" if title.hre_emperor else "1",
            color="purple" if title.in_hre else "black",
        )
    for tag, title in sorted(world.independent_titles.items()):
        if title.generated_liege is not None and title.generated_liege.tag in world.independent_titles:
            graph.edge(title.generated_liege.tag, tag, style="dashed")
    return graph


def render_realm_graph(world: World, output_dir: str | Path) -> Path | None:
    graph = build_realm_graph(world)
    filename = str(Path(output_dir) / "realms")
    try:
        rendered = graph.render(filename, format="png", cleanup=True)
    except graphviz.ExecutableNotFound as e:
        logger.error("Error rendering realm graph (is Graphviz installed?): %s", e)
        return None
    logger.info("Realm graph rendered to %s.", rendered)
    return Path(rendered)
