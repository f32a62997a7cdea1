# path: fake-location/fakelocation/utils/geo.py

from __future__ import annotations

from typing import Tuple
import math
import random

from fakelocation.models.location_models import Coordinate


METERS_PER_DEG_LAT = 111320.0
EARTH_RADIUS_M = 6371000.0
POLE_COS_EPSILON = 1e-9


def meters_to_lat_deg(meters: float) -> float:
    return meters / METERS_PER_DEG_LAT


def meters_to_lon_deg(meters: float, at_lat: float) -> float:
    # Undefined at the poles (cos -> 0).
    return meters / (METERS_PER_DEG_LAT * math.cos(math.radians(at_lat)))


def wrap_lon(lon: float) -> float:
    # Into [-180, 180)
    return (lon + 540.0) % 360.0 - 180.0


def haversine_m(a_lat: float, a_lon: float, b_lat: float, b_lon: float) -> float:
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lon - a_lon)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(s), math.sqrt(1 - s))


def distance_m(a: Coordinate, b: Coordinate) -> float:
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    # Initial bearing (forward azimuth), degrees true, [0,360)
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dlmb = math.radians(b.longitude - a.longitude)

    y = math.sin(dlmb) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlmb)
    brng = math.degrees(math.atan2(y, x))
    return (brng + 360.0) % 360.0


def destination_point(origin: Coordinate, bearing_rad: float, distance: float) -> Tuple[float, float]:
    """
    Spherical forward problem: the (lat, lon) reached by travelling `distance`
    metres from `origin` along the initial bearing `bearing_rad` (radians from north).
    """
    phi1 = math.radians(origin.latitude)
    lmb1 = math.radians(origin.longitude)
    delta = distance / EARTH_RADIUS_M

    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(bearing_rad)
    phi2 = math.asin(sin_phi2)
    y = math.sin(bearing_rad) * math.sin(delta) * math.cos(phi1)
    x = math.cos(delta) - math.sin(phi1) * sin_phi2
    lmb2 = lmb1 + math.atan2(y, x)
    return math.degrees(phi2), wrap_lon(math.degrees(lmb2))


def interpolate(a: Coordinate, b: Coordinate, t: float) -> Coordinate:
    # Linear in lat/lon space; fine for the short hops between adjacent waypoints.
    return Coordinate(
        latitude=a.latitude + (b.latitude - a.latitude) * t,
        longitude=a.longitude + (b.longitude - a.longitude) * t,
    )


def apply_jitter(base: Coordinate, radius_m: float, rng: random.Random | None = None) -> Coordinate:
    """Uniform random point on the disc of `radius_m` metres around `base`."""
    rng = rng or random
    angle = rng.random() * 2 * math.pi
    r = math.sqrt(rng.random()) * radius_m
    dy = r * math.cos(angle)
    dx = r * math.sin(angle)

    lon = base.longitude
    # At a pole every longitude is the same point; there is no east offset to apply.
    if math.cos(math.radians(base.latitude)) > POLE_COS_EPSILON:
        lon = wrap_lon(lon + meters_to_lon_deg(dx, base.latitude))
    lat = min(90.0, max(-90.0, base.latitude + meters_to_lat_deg(dy)))
    return Coordinate(latitude=lat, longitude=lon)
