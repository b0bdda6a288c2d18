import argparse
import logging
import os
import sys
from typing import List, Optional

from streetrouting.errors import RoutingError
from streetrouting.streetmap import ASTAR_THRESHOLD_METERS, StreetMap, load_map


SAMPLE_MAP = os.path.join(os.path.dirname(__file__), "data", "sample.map")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="streetrouting", description="Shortest routes between map intersections.")
    parser.add_argument("stops", nargs="*", metavar="STOP",
                        help="intersection ids to visit in order: START [VIA ...] END")
    parser.add_argument("--map", default=SAMPLE_MAP, help="tab separated map file (default: bundled sample)")
    parser.add_argument("--astar-threshold", type=float, default=ASTAR_THRESHOLD_METERS,
                        help="straight-line meters above which A* is used instead of Dijkstra")
    parser.add_argument("--road", metavar="ROAD_ID", help="show the intersections a road connects")
    parser.add_argument("--intersection", metavar="ID", help="show an intersection and the roads leaving it")
    parser.add_argument("-v", "--verbose", action="store_true", help="log loading and search details")
    args = parser.parse_args(argv)
    if not args.road and not args.intersection and len(args.stops) < 2:
        parser.error("a route needs at least a START and an END")
    return args


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def print_route(street_map: StreetMap, stops: List[str]) -> bool:
    """Prints each leg of the route and its total length. Returns False if there is no route."""
    path = street_map.find_route(*stops)
    if not path:
        print(f"No path through {' -> '.join(stops)}.")
        return False
    for step, (a, b, road) in enumerate(street_map.legs(path), start=1):
        print(f"{step:>3}. {a} -> {b} via {road} ({format_distance(road.distance)})")
    print(f"Total: {format_distance(street_map.route_length(path).weight)} over {len(path) - 1} roads")
    return True


def print_road(street_map: StreetMap, road_id: str):
    a, b, road = street_map.road(road_id)
    print(f"Road {road}: {format_distance(road.distance)}")
    print(f"  connects {a} and {b}")


def print_intersection(street_map: StreetMap, id: str):
    intersection = street_map.intersection(id)
    print(f"Intersection {intersection} at ({intersection.latitude}, {intersection.longitude})")
    for neighbor, road in street_map.roads_at(id):
        print(f"  - {neighbor} via {road} ({format_distance(road.distance)})")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        street_map = load_map(args.map, astar_threshold=args.astar_threshold)
        if args.road:
            print_road(street_map, args.road)
        if args.intersection:
            print_intersection(street_map, args.intersection)
        found = print_route(street_map, args.stops) if len(args.stops) >= 2 else True
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error loading map {args.map}: {e}", file=sys.stderr)
        return 1
    except RoutingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0 if found else 2


if __name__ == "__main__":
    sys.exit(main())
