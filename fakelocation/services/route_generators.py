# path: fake-location/fakelocation/services/route_generators.py

from __future__ import annotations

from typing import List
import math

from fakelocation.models.location_models import Coordinate, Waypoint
from fakelocation.utils.geo import destination_point, meters_to_lat_deg, meters_to_lon_deg


COORD_DECIMALS = 6


def _waypoint(lat: float, lon: float, hold_seconds: float) -> Waypoint:
    return Waypoint(
        latitude=round(lat, COORD_DECIMALS),
        longitude=round(lon, COORD_DECIMALS),
        hold_seconds=hold_seconds,
    )


def _close_loop(points: List[Waypoint]) -> List[Waypoint]:
    points.append(points[0].model_copy())
    return points


def circle_route(
    center: Coordinate,
    radius_m: float,
    point_count: int,
    clockwise: bool = True,
    hold_seconds: float = 0.0,
) -> List[Waypoint]:
    """
    Closed loop of `point_count` waypoints on a great-circle "circle" of
    `radius_m` around `center`, starting due north. Returns point_count + 1
    points, the last one repeating the first.
    """
    if point_count <= 0:
        raise ValueError(f"point_count must be > 0: {point_count}")
    if radius_m < 0:
        raise ValueError(f"radius_m must be >= 0: {radius_m}")

    points = []
    for i in range(point_count):
        theta = 2 * math.pi * i / point_count
        if not clockwise:
            theta = 2 * math.pi - theta
        lat, lon = destination_point(center, theta, radius_m)
        points.append(_waypoint(lat, lon, hold_seconds))
    return _close_loop(points)


def square_route(
    center: Coordinate,
    side_m: float,
    points_per_side: int,
    clockwise: bool = True,
    hold_seconds: float = 0.0,
) -> List[Waypoint]:
    """
    Closed loop around a square of `side_m` centred on `center`, starting at the
    top-left corner. Each edge is split into `points_per_side` points, so the
    result has 4 * points_per_side + 1 waypoints.
    """
    if points_per_side <= 0:
        raise ValueError(f"points_per_side must be > 0: {points_per_side}")
    if side_m < 0:
        raise ValueError(f"side_m must be >= 0: {side_m}")

    half = side_m / 2
    top = center.latitude + meters_to_lat_deg(half)
    bottom = center.latitude - meters_to_lat_deg(half)
    right = center.longitude + meters_to_lon_deg(half, center.latitude)
    left = center.longitude - meters_to_lon_deg(half, center.latitude)

    if clockwise:
        corners = [(top, left), (top, right), (bottom, right), (bottom, left)]
    else:
        corners = [(top, left), (bottom, left), (bottom, right), (top, right)]

    points = []
    for side in range(4):
        start_lat, start_lon = corners[side]
        end_lat, end_lon = corners[(side + 1) % 4]
        for i in range(points_per_side):
            t = i / points_per_side
            points.append(
                _waypoint(
                    start_lat + (end_lat - start_lat) * t,
                    start_lon + (end_lon - start_lon) * t,
                    hold_seconds,
                )
            )
    return _close_loop(points)
