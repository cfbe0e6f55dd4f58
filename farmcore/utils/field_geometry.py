"""
Field boundary utilities: GeoJSON parsing, projection and area in rai.
"""
import json
from typing import List, Tuple

from pyproj import Transformer
from shapely.geometry import Polygon

SQUARE_METERS_PER_RAI = 1600.0


def get_utm_zone(longitude: float) -> int:
    """
    Calculate the UTM zone number from longitude.
    
    Args:
        longitude: Longitude in degrees
        
    Returns:
        UTM zone number (1-60)
    """
    return int((longitude + 180) / 6) + 1


def get_utm_crs(longitude: float, latitude: float) -> str:
    """
    Get the UTM CRS covering a location.
    
    Args:
        longitude: Longitude in degrees
        latitude: Latitude in degrees
        
    Returns:
        EPSG code for the UTM zone
    """
    zone = get_utm_zone(longitude)
    # Northern hemisphere: EPSG:326XX, Southern hemisphere: EPSG:327XX
    hemisphere = "6" if latitude >= 0 else "7"
    return f"EPSG:32{hemisphere}{zone:02d}"


def parse_boundary(polygon_geojson: str) -> List[Tuple[float, float]]:
    """
    Parse a GeoJSON Polygon (bare geometry or Feature) into its exterior ring.
    
    Args:
        polygon_geojson: GeoJSON text
        
    Returns:
        List of (longitude, latitude) pairs
        
    Raises:
        ValueError: If the text is not a valid polygon
    """
    try:
        data = json.loads(polygon_geojson)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValueError(f"Boundary is not valid JSON: {e}")
    
    if isinstance(data, dict) and data.get("type") == "Feature":
        data = data.get("geometry")
    if not isinstance(data, dict) or data.get("type") != "Polygon":
        raise ValueError("Boundary must be a GeoJSON Polygon")
    
    rings = data.get("coordinates") or []
    if not isinstance(rings, list) or not rings or not isinstance(rings[0], list):
        raise ValueError("Boundary coordinates must be a list of rings")
    if len(rings[0]) < 4:
        raise ValueError("Boundary polygon needs at least 3 distinct vertices")
    
    try:
        ring = [(float(p[0]), float(p[1])) for p in rings[0]]
    except (TypeError, IndexError, ValueError):
        raise ValueError("Boundary points must be [longitude, latitude] pairs")
    for lon, lat in ring:
        if not (-180 <= lon <= 180 and -90 <= lat <= 90):
            raise ValueError(f"Boundary coordinate out of range: {lon},{lat}")
    
    if not Polygon(ring).is_valid:
        raise ValueError("Boundary polygon is self-intersecting or degenerate")
    return ring


def project_ring_to_meters(ring: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    """
    Project (lon, lat) vertices into the UTM zone of the first vertex.
    
    Args:
        ring: List of (longitude, latitude) pairs
        
    Returns:
        List of (x, y) coordinates in meters
    """
    lon, lat = ring[0]
    transformer = Transformer.from_crs(
        "EPSG:4326",
        get_utm_crs(lon, lat),
        always_xy=True,
    )
    return [transformer.transform(x, y) for x, y in ring]


def boundary_area_rai(polygon_geojson: str) -> float:
    """
    Area enclosed by a GeoJSON boundary, in rai (1 rai = 1600 m²).
    
    Args:
        polygon_geojson: GeoJSON Polygon text
        
    Returns:
        Area rounded to two decimals
    """
    ring = parse_boundary(polygon_geojson)
    area_m2 = Polygon(project_ring_to_meters(ring)).area
    return round(area_m2 / SQUARE_METERS_PER_RAI, 2)
