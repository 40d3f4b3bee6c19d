"""
Reference table of South African towns and the nearest-town resolver.

Usage:
    from towns import NearestTownResolver
    town = NearestTownResolver().resolve(Point(lat=-33.9, lon=18.4))
"""
from .reference import SOUTH_AFRICAN_TOWNS, MAP_CENTER, MAP_ZOOM, town_index
from .resolver import NearestTownResolver, nearest_town, squared_distance

__all__ = [
    "SOUTH_AFRICAN_TOWNS",
    "MAP_CENTER",
    "MAP_ZOOM",
    "town_index",
    "NearestTownResolver",
    "nearest_town",
    "squared_distance",
]
