"""
Supported cities and the rental sites scraped for each.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from app.domain.search import UnsupportedRegionError

CITY_SITES: dict[str, tuple[str, ...]] = {
    "hcmc": (
        "https://www.tigitmotorbikes.com/prices",
        "https://wheelie-saigon.com/scooter-motorcycle-rental-hcmc-daily-weekly-or-monthly/",
        "https://saigonmotorcycles.com/rentals/",
        "https://stylemotorbikes.com",
        "https://theextramile.co/city-rental-prices/",
    ),
    "hanoi": (
        "https://motorbikerentalinhanoi.com/",
        "https://offroadvietnam.com",
        "https://rentbikehanoi.com",
        "https://book2wheel.com",
        "https://motorvina.com",
    ),
    "danang": (
        "https://motorbikerentaldanang.com/",
        "https://danangmotorbikesrental.com",
        "https://danangbike.com",
        "https://motorbikerentalhoian.com",
        "https://hoianbikerental.com/pricing/",
        "https://tuanmotorbike.com",
    ),
    "nhatrang": (
        "https://moto4free.com/",
        "https://motorbikemuine.com/",
    ),
}


def normalize_city(city: str) -> str:
    return city.strip().lower()


def resolve_region(
    city: str,
    *,
    regions: Mapping[str, Sequence[str]] | None = None,
) -> tuple[str, tuple[str, ...]]:
    """
    Return the normalized city key and its ordered site list.

    Raises UnsupportedRegionError for unknown cities and for cities whose
    site list is empty.
    """

    table = CITY_SITES if regions is None else regions
    key = normalize_city(city)
    sites = tuple(table.get(key, ()))
    if not key or not sites:
        raise UnsupportedRegionError(city)
    return key, sites


def supported_regions(
    regions: Mapping[str, Sequence[str]] | None = None,
) -> dict[str, list[str]]:
    table = CITY_SITES if regions is None else regions
    return {city: list(sites) for city, sites in table.items() if sites}
