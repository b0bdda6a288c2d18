import csv
import logging
from typing import List, Tuple

from streetrouting.datastructures import HashMap
from streetrouting.entities import EdgeWeight, Intersection, Road
from streetrouting.errors import InvalidArgumentError, MapFormatError, VertexNotFoundError
from streetrouting.graph import AdjacencyListGraph, haversine


logger = logging.getLogger(__name__)

ASTAR_THRESHOLD_METERS = 200000


def load_map(filename: str, **kwargs) -> "StreetMap":
    """
    Loads a tab separated map file.
    'i <id> <latitude> <longitude>' lines declare intersections and
    'r <road id> <id> <id>' lines declare two-way roads. Other lines are skipped.
    Roads are weighted by the great-circle distance between their ends in meters.
    """
    graph = AdjacencyListGraph()
    intersections = HashMap()
    roads: List[Tuple[int, List[str]]] = []

    with open(filename, newline="", encoding="utf-8") as file:
        reader = csv.reader(file, delimiter="\t")
        for number, parts in enumerate(reader, start=1):
            if len(parts) < 4:
                continue
            if parts[0] == "i":
                intersections[parts[1]] = parse_intersection(number, *parts[1:4])
            elif parts[0] == "r":
                roads.append((number, parts[1:4]))

    graph.add_all(intersections.values())
    for number, (road_id, first, second) in roads:
        i1, i2 = intersections.get(first), intersections.get(second)
        if i1 is None or i2 is None:
            raise MapFormatError(f"line {number}: road {road_id} references a missing intersection")
        road = Road(road_id, haversine(i1.latitude, i1.longitude, i2.latitude, i2.longitude))
        graph.set(i1, i2, road)
        graph.set(i2, i1, road)
    logger.info("Loaded %d intersections and %d roads from %s", len(intersections), len(roads), filename)
    return StreetMap(graph, **kwargs)


def parse_intersection(number: int, id: str, latitude: str, longitude: str) -> Intersection:
    """Parse the fields of an intersection line."""
    try:
        return Intersection(id, float(latitude), float(longitude))
    except ValueError:
        raise MapFormatError(f"line {number}: bad coordinates for intersection {id}") from None


class StreetMap:
    """Stores a street graph and finds routes between intersections by id."""
    def __init__(self, graph: AdjacencyListGraph, astar_threshold: float = ASTAR_THRESHOLD_METERS):
        self.graph = graph
        self.astar_threshold = astar_threshold
        self.by_id = HashMap()
        self.coordinates = HashMap()
        for intersection in graph:
            self.by_id[intersection.intersection_id] = intersection
            self.coordinates[intersection] = intersection.coordinates
        self.roads = HashMap()
        for source in graph:
            for target in graph.connected(source):
                road = graph.get(source, target)
                if isinstance(road, Road):
                    self.roads.put_if_absent(road.road_id, (source, target, road))

    def intersection(self, id: str) -> Intersection:
        if (found := self.by_id.get(id)) is None:
            raise VertexNotFoundError(f"no intersection with id {id!r}")
        return found

    def find_path(self, start: str, end: str) -> List[Intersection]:
        """
        Shortest path between two intersection ids.
        Long trips switch from Dijkstra to A*, since Dijkstra settles most of the map first.
        """
        source, target = self.intersection(start), self.intersection(end)
        straight = haversine(source.latitude, source.longitude, target.latitude, target.longitude)
        if straight > self.astar_threshold:
            logger.info("Switching to A* for a %d km trip", straight // 1000)
            return self.graph.path_astar(source, target, self.coordinates)
        return self.graph.path(source, target)

    def legs(self, path: List[Intersection]) -> List[Tuple[Intersection, Intersection, Road]]:
        """Pairs each step of path with the road taken."""
        return [(a, b, self.graph.get(a, b)) for a, b in zip(path, path[1:])]

    def route_length(self, path: List[Intersection]) -> EdgeWeight:
        return self.graph.path_weight(path)

    def find_route(self, *ids: str) -> List[Intersection]:
        """
        Shortest route visiting the intersection ids in order.
        Each consecutive pair is routed with find_path, [] if any of them is unreachable.
        """
        if len(ids) < 2:
            raise InvalidArgumentError("a route needs a start and an end")
        route: List[Intersection] = []
        for start, end in zip(ids, ids[1:]):
            segment = self.find_path(start, end)
            if not segment:
                logger.info("No path from %s to %s", start, end)
                return []
            route.extend(segment[1:] if route else segment)
        return route

    def road(self, road_id: str) -> Tuple[Intersection, Intersection, Road]:
        """The (from, to, road) ends of the road with this id."""
        if (found := self.roads.get(road_id)) is None:
            raise VertexNotFoundError(f"no road with id {road_id!r}")
        return found

    def roads_at(self, id: str) -> List[Tuple[Intersection, Road]]:
        """Neighbors of an intersection paired with the road leading to each."""
        intersection = self.intersection(id)
        return [(neighbor, self.graph.get(intersection, neighbor)) for neighbor in self.graph.connected(intersection)]
