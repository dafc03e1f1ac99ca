"""
ck2world/territory.py
~~~~~~~~~~~~~~~~~~~~~
Territory aggregation and the province sanity watchdog.

Every independent title gathers the provinces of its whole live vassal
tree into its own province set, and each province learns which
independent title holds it. The sanity check then complains, without
fixing anything, about provinces claimed by more than one independent.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from ck2world.models import Title

logger = logging.getLogger(__name__)


def congregate_provinces(independent_titles: dict[str, Title], log: logging.Logger = logger) -> int:
    """Aggregate provinces under each independent title; returns the number of holdings recorded."""
    counter = 0
    for title in independent_titles.values():
        title.congregate_provinces(independent_titles)
        for province in title.provinces.values():
            province.holding_title = title
        counter += len(title.provinces)
    log.info("<> %d provinces held by independents.", counter)
    return counter


def sanity_check_provinces(independent_titles: dict[str, Title], log: logging.Logger = logger) -> dict[int, list[str]]:
    """Warn about every province owned by several independents; returns those provinces and their claimants."""
    province_owners: defaultdict[int, list[str]] = defaultdict(list)
    for tag, title in independent_titles.items():
        for province_id in title.provinces:
            province_owners[province_id].append(tag)

    overlaps = {
        province_id: owners
        for province_id, owners in sorted(province_owners.items())
        if len(owners) > 1
    }
    for province_id, owners in overlaps.items():
        log.warning("Province ID: %d is owned by: %s", province_id, ", ".join(owners))

    if overlaps:
        log.warning("!! Province sanity check failed! We have excess provinces!")
    else:
        log.info("<> Province sanity check passed, all provinces accounted for.")
    return overlaps


def filter_provinceless_titles(independent_titles: dict[str, Title], log: logging.Logger = logger) -> list[str]:
    """Drop independent titles that ended up without land; returns the dropped tags."""
    dropped = [tag for tag, title in independent_titles.items() if not title.provinces]
    for tag in dropped:
        del independent_titles[tag]
    log.info("<> %d empty titles dropped, %d remain.", len(dropped), len(independent_titles))
    return dropped
