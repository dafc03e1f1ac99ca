"""
ck2world/sovereignty.py
~~~~~~~~~~~~~~~~~~~~~~~
Decides which titles are genuinely independent.

A held title without a liege is only a candidate: mercenary bands, holy
orders and landless claimants have no liege either. A candidate counts as
independent when its holder also holds at least one county anywhere.
"""

from __future__ import annotations

import logging

from ck2world.models import COUNTY, Title

logger = logging.getLogger(__name__)


def find_sovereignty_candidates(titles: dict[str, Title]) -> dict[str, Title]:
    return {
        tag: title
        for tag, title in titles.items()
        if title.holder is not None and title.liege is None
    }


def find_county_holders(titles: dict[str, Title]) -> set[int]:
    return {
        title.holder.id
        for title in titles.values()
        if title.holder is not None and title.tag.startswith(COUNTY)
    }


def filter_independent_titles(titles: dict[str, Title], log: logging.Logger = logger) -> dict[str, Title]:
    """Return the independent-title set, keyed by tag."""
    county_holders = find_county_holders(titles)
    independent_titles = {
        tag: title
        for tag, title in find_sovereignty_candidates(titles).items()
        if title.holder.id in county_holders
    }
    log.info("<> %d independent titles recognized.", len(independent_titles))
    return independent_titles
