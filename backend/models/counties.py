"""
The fixed list of Irish counties used for content routing and admin ownership.

County names are compared by exact string equality, so the spelling here is
the persisted format.
"""

from typing import NamedTuple


class Coordinates(NamedTuple):
    lat: float
    lng: float


# Approximate centre points, also used as the ordered county list.
COUNTY_COORDINATES: dict[str, Coordinates] = {
    "Carlow": Coordinates(52.8408, -6.9261),
    "Cavan": Coordinates(53.9908, -7.3606),
    "Clare": Coordinates(52.9045, -9.2766),
    "Cork": Coordinates(51.8985, -8.4756),
    "Donegal": Coordinates(54.6541, -8.1043),
    "Dublin": Coordinates(53.3498, -6.2603),
    "Galway": Coordinates(53.2707, -9.0568),
    "Kerry": Coordinates(52.2689, -9.7028),
    "Kildare": Coordinates(53.1561, -6.9144),
    "Kilkenny": Coordinates(52.6542, -7.2522),
    "Laois": Coordinates(53.0328, -7.3000),
    "Leitrim": Coordinates(54.1167, -8.0833),
    "Limerick": Coordinates(52.6638, -8.6268),
    "Longford": Coordinates(53.7257, -7.7983),
    "Louth": Coordinates(53.9917, -6.5417),
    "Mayo": Coordinates(53.9000, -9.3000),
    "Meath": Coordinates(53.6500, -6.6833),
    "Monaghan": Coordinates(54.2500, -6.9667),
    "Offaly": Coordinates(53.2739, -7.4889),
    "Roscommon": Coordinates(53.6333, -8.1833),
    "Sligo": Coordinates(54.2667, -8.4833),
    "Tipperary": Coordinates(52.4736, -8.1619),
    "Waterford": Coordinates(52.2583, -7.1119),
    "Westmeath": Coordinates(53.5333, -7.3500),
    "Wexford": Coordinates(52.3369, -6.4633),
    "Wicklow": Coordinates(53.0000, -6.4167),
}

COUNTIES: tuple[str, ...] = tuple(COUNTY_COORDINATES)


def is_valid_county(value: str | None) -> bool:
    return value in COUNTY_COORDINATES
