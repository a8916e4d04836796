"""
Query catalog: the fixed city, zone and category lists and their traversal order.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from app.domain.crawl import QueryTuple

ZONES: tuple[str, ...] = ("Center", "Districts")

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Dentist",
    "Dental Hospital",
    "Dental Clinic",
)

DEFAULT_CITIES: tuple[str, ...] = (
    "Adana", "Adıyaman", "Afyonkarahisar", "Ağrı", "Amasya", "Ankara", "Antalya",
    "Artvin", "Aydın", "Balıkesir", "Bilecik", "Bingöl", "Bitlis", "Bolu", "Burdur",
    "Bursa", "Çanakkale", "Çankırı", "Çorum", "Denizli", "Diyarbakır", "Edirne",
    "Elazığ", "Erzincan", "Erzurum", "Eskişehir", "Gaziantep", "Giresun",
    "Gümüşhane", "Hakkari", "Hatay", "Isparta", "Mersin", "İstanbul", "İzmir",
    "Kars", "Kastamonu", "Kayseri", "Kırklareli", "Kırşehir", "Kocaeli", "Konya",
    "Kütahya", "Malatya", "Manisa", "Kahramanmaraş", "Mardin", "Muğla", "Muş",
    "Nevşehir", "Niğde", "Ordu", "Rize", "Sakarya", "Samsun", "Siirt", "Sinop",
    "Sivas", "Tekirdağ", "Tokat", "Trabzon", "Tunceli", "Şanlıurfa", "Uşak", "Van",
    "Yozgat", "Zonguldak", "Aksaray", "Bayburt", "Karaman", "Kırıkkale", "Batman",
    "Şırnak", "Bartın", "Ardahan", "Iğdır", "Yalova", "Karabük", "Kilis",
    "Osmaniye", "Düzce",
)


@dataclass(frozen=True)
class QueryCatalog:
    """
    Ordered lists whose cross product defines the crawl.
    """

    cities: tuple[str, ...]
    zones: tuple[str, ...] = ZONES
    categories: tuple[str, ...] = DEFAULT_CATEGORIES

    @classmethod
    def build(
        cls,
        *,
        cities: Sequence[str],
        categories: Sequence[str],
        zones: Sequence[str] = ZONES,
    ) -> "QueryCatalog":
        cleaned_cities = _clean(cities)
        cleaned_zones = _clean(zones)
        cleaned_categories = _clean(categories)
        if not cleaned_cities or not cleaned_zones or not cleaned_categories:
            raise ValueError("Query catalog requires at least one city, zone and category.")
        return cls(cities=cleaned_cities, zones=cleaned_zones, categories=cleaned_categories)

    @property
    def size(self) -> int:
        return len(self.cities) * len(self.zones) * len(self.categories)

    def __iter__(self) -> Iterator[QueryTuple]:
        return iter_query_tuples(self.cities, self.zones, self.categories)


def iter_query_tuples(
    cities: Sequence[str],
    zones: Sequence[str],
    categories: Sequence[str],
) -> Iterator[QueryTuple]:
    """
    Yield tuples city-major, then zone, then category.
    """

    for city in cities:
        for zone in zones:
            for category in categories:
                yield QueryTuple(city=city, zone=zone, category=category)


def _clean(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(value.strip() for value in values if value and value.strip())
