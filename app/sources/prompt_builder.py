"""Prompt builder for maps-grounded business searches."""

_TEMPLATE = """\
List the "{category}" businesses located in the {zone_phrase} of {city}.
For each business provide, completely:
1. The full business name
2. Landline and mobile phone numbers if available (separate them with a comma)
3. The full street address

IMPORTANT: Return only real, verified businesses.
"""

_ZONE_PHRASES = {
    "center": "city center",
    "districts": "outlying districts",
}


class SearchPromptBuilder:
    """Builds the query text sent for one (city, zone, category) tuple."""

    def build(self, city: str, zone: str, category: str) -> str:
        zone_phrase = _ZONE_PHRASES.get(zone.strip().lower(), f"{zone} area")
        return _TEMPLATE.format(
            city=city.strip(),
            zone_phrase=zone_phrase,
            category=category.strip(),
        )
