"""
International vehicle registration codes, keyed by country name.

Country names are matched case-insensitively; English and local spellings
are both listed.  The entry form shows the code next to the country and
stores it on the new location.
"""

from __future__ import annotations

# Order matters for partial matching: the first key that matches wins.
COUNTRY_CODES: dict[str, str] = {
    # Germany variants
    "germany": "D",
    "deutschland": "D",
    "german": "D",
    "de": "D",
    "deu": "D",
    # Other European countries
    "austria": "A",
    "österreich": "A",
    "belgium": "B",
    "belgique": "B",
    "belgië": "B",
    "switzerland": "CH",
    "schweiz": "CH",
    "suisse": "CH",
    "svizzera": "CH",
    "czech republic": "CZ",
    "česká republika": "CZ",
    "denmark": "DK",
    "danmark": "DK",
    "spain": "E",
    "españa": "E",
    "finland": "FIN",
    "suomi": "FIN",
    "france": "F",
    "frankreich": "F",
    "united kingdom": "GB",
    "great britain": "GB",
    "england": "GB",
    "scotland": "GB",
    "wales": "GB",
    "greece": "GR",
    "ελλάδα": "GR",
    "hungary": "H",
    "magyarország": "H",
    "ireland": "IRL",
    "éire": "IRL",
    "italy": "I",
    "italia": "I",
    "luxembourg": "L",
    "netherlands": "NL",
    "nederland": "NL",
    "holland": "NL",
    "norway": "N",
    "norge": "N",
    "poland": "PL",
    "polska": "PL",
    "portugal": "P",
    "romania": "RO",
    "românia": "RO",
    "sweden": "S",
    "sverige": "S",
    "slovenia": "SLO",
    "slovenija": "SLO",
    "slovakia": "SK",
    "slovensko": "SK",
    # Non-European countries
    "united states": "USA",
    "usa": "USA",
    "america": "USA",
    "canada": "CDN",
    "japan": "J",
    "australia": "AUS",
    "new zealand": "NZ",
    "china": "CHN",
    "russia": "RUS",
    "brasil": "BR",
    "brazil": "BR",
    "india": "IND",
    "south africa": "ZA",
    "mexico": "MEX",
    "turkey": "TR",
    "türkiye": "TR",
}

_ALL_CODES = frozenset(COUNTRY_CODES.values())


def get_vehicle_code(country: str | None) -> str | None:
    """
    Return the vehicle registration code for a country name, or None.

    Tries an exact (case-insensitive) lookup first, then a partial match
    where either name contains the other ("Federal Republic of Germany").
    """
    if not country:
        return None

    normalized = country.lower().strip()
    if not normalized:
        return None

    if normalized in COUNTRY_CODES:
        return COUNTRY_CODES[normalized]

    for key, code in COUNTRY_CODES.items():
        if key in normalized or normalized in key:
            return code

    return None


def all_country_codes() -> list[dict[str, str]]:
    """One entry per code, using the first country listed for it, sorted by country."""
    first_country: dict[str, str] = {}
    for country, code in COUNTRY_CODES.items():
        first_country.setdefault(code, country)

    entries = [
        {"country": country[:1].upper() + country[1:], "code": code}
        for code, country in first_country.items()
    ]
    entries.sort(key=lambda e: e["country"])
    return entries


def is_valid_vehicle_code(code: str | None) -> bool:
    if not code:
        return False
    return code.strip().upper() in _ALL_CODES
