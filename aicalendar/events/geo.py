"""Heuristic in-region classifier for candidate events.

Sources disagree on how much location detail they publish, so the filter
tries progressively weaker signals: a city name, then free-text address, then
raw coordinates. A candidate with no usable signal is excluded.

The coordinate tier uses squared Euclidean distance in degrees from the
region centre. At the default latitude 0.72 degrees is roughly 50 miles.
"""

from __future__ import annotations

import dataclasses
import math
import typing as typ

Coordinate: typ.TypeAlias = float | str | None


@dataclasses.dataclass(frozen=True, slots=True)
class RegionConfig:
    """Region definition consumed by :func:`is_in_region`.

    Attributes
    ----------
    primary_city
        Lowercase primary city name, also matched inside address text.
    city_names
        Lowercase allow-list of the primary city and its suburbs.
    state_markers
        Lowercase substrings identifying the state inside address text.
    center
        ``(latitude, longitude)`` of the region centre.
    radius_deg
        Radius of the coordinate geo-fence in degrees.

    """

    primary_city: str = "portland"
    city_names: tuple[str, ...] = (
        "portland",
        "beaverton",
        "hillsboro",
        "lake oswego",
        "tigard",
        "vancouver",
        "gresham",
        "oregon city",
    )
    state_markers: tuple[str, ...] = (", or ",)
    center: tuple[float, float] = (45.5152, -122.6784)
    radius_deg: float = 0.72


DEFAULT_REGION = RegionConfig()


@dataclasses.dataclass(frozen=True, slots=True)
class GeoCandidate:
    """Location signals extracted from a source record."""

    city: str | None = None
    address: str | None = None
    latitude: Coordinate = None
    longitude: Coordinate = None


def parse_coordinate(value: Coordinate) -> float | None:
    """Return a finite float for numeric input or numeric strings, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            parsed = float(value)
        except ValueError:
            return None
    else:
        parsed = float(value)
    return parsed if math.isfinite(parsed) else None


def is_within_radius(
    latitude: Coordinate,
    longitude: Coordinate,
    region: RegionConfig = DEFAULT_REGION,
) -> bool:
    """Return True when both coordinates parse and fall inside the geo-fence."""
    lat = parse_coordinate(latitude)
    lng = parse_coordinate(longitude)
    if lat is None or lng is None:
        return False
    center_lat, center_lng = region.center
    dlat = lat - center_lat
    dlng = lng - center_lng
    return dlat * dlat + dlng * dlng < region.radius_deg * region.radius_deg


def _matches_city(city: str | None, region: RegionConfig) -> bool:
    if not city:
        return False
    lowered = city.lower()
    return any(name in lowered for name in region.city_names)


def _matches_address(address: str | None, region: RegionConfig) -> bool:
    if not address:
        return False
    lowered = address.lower()
    if region.primary_city in lowered:
        return True
    return any(marker in lowered for marker in region.state_markers)


def is_in_region(
    candidate: GeoCandidate,
    region: RegionConfig = DEFAULT_REGION,
) -> bool:
    """Classify a candidate as in-region; the first matching tier wins.

    Examples
    --------
    >>> is_in_region(GeoCandidate(city="Portland, OR"))
    True
    >>> is_in_region(GeoCandidate(latitude=48.5, longitude=-122.6784))
    False
    >>> is_in_region(GeoCandidate())
    False

    """
    if _matches_city(candidate.city, region):
        return True
    if _matches_address(candidate.address, region):
        return True
    return is_within_radius(candidate.latitude, candidate.longitude, region)
