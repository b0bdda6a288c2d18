"""
Directed, weighted graph contract and its adjacency-list implementation.

Vertices are any hashable values, weights are EdgeWeight instances.
Undirected roads are two directed edges with equal weight.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from streetrouting.datastructures import HashMap, IndexedPriorityQueue
from streetrouting.entities import EdgeWeight
from streetrouting.errors import InconsistentPathError, InvalidArgumentError, VertexNotFoundError


logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float, radius: float = EARTH_RADIUS_METERS) -> float:
    """Great-circle distance between two (latitude, longitude) points, in units of radius."""
    lat1 = math.radians(lat1)
    lat2 = math.radians(lat2)
    d_lat = lat2 - lat1
    d_lon = math.radians(lon2 - lon1)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _require(vertex, role: str):
    if vertex is None:
        raise InvalidArgumentError(f"{role} vertex cannot be None")


class Graph(ABC):
    """
    Mutable directed graph over hashable vertices with EdgeWeight edges.
    The graph may contain cycles. Subclasses provide storage and shortest paths,
    the traversal helpers here only rely on the abstract operations.
    """

    @abstractmethod
    def get(self, source, target) -> Optional[EdgeWeight]:
        """
        Weight of the directed edge source -> target, or None if no edge exists.
        Raises VertexNotFoundError if source is not in the graph.
        """
        raise NotImplementedError

    @abstractmethod
    def set(self, source, target, weight: EdgeWeight) -> Optional[EdgeWeight]:
        """Sets the weight of source -> target. Returns the previous weight or None."""
        raise NotImplementedError

    @abstractmethod
    def vertices(self) -> List:
        """Snapshot of the vertices in the graph."""
        raise NotImplementedError

    @abstractmethod
    def edges(self) -> Set[Tuple]:
        """Snapshot of the directed (source, target) pairs in the graph."""
        raise NotImplementedError

    @abstractmethod
    def add_all(self, vertices: Iterable) -> List:
        """Adds unconnected vertices. Returns the ones that were already present."""
        raise NotImplementedError

    @abstractmethod
    def remove_all(self, vertices: Iterable) -> List:
        """Removes vertices and every edge touching them. Returns the ones that were not present."""
        raise NotImplementedError

    @abstractmethod
    def remove_edge(self, source, target) -> Optional[EdgeWeight]:
        """Removes source -> target. Returns its weight, or None if there was no such edge."""
        raise NotImplementedError

    @abstractmethod
    def contains(self, vertex) -> bool:
        raise NotImplementedError

    @abstractmethod
    def count_edges_between(self, v1, v2) -> int:
        """Number of directed edges between v1 and v2, always 0, 1 or 2."""
        raise NotImplementedError

    @abstractmethod
    def connected(self, source) -> List:
        """
        Vertices source has an outbound edge to.
        Raises VertexNotFoundError if source is not in the graph.
        """
        raise NotImplementedError

    @abstractmethod
    def subgraph(self, vertices: Iterable) -> "Graph":
        """New graph holding only the given vertices and the edges among them."""
        raise NotImplementedError

    @abstractmethod
    def path(self, source, target) -> List:
        """Shortest path from source to target, [] if target is unreachable."""
        raise NotImplementedError

    @abstractmethod
    def distance(self, source, target) -> EdgeWeight:
        """Shortest distance from source to target, infinity if target is unreachable."""
        raise NotImplementedError

    def add(self, *vertices) -> bool:
        """Adds vertices. Returns True if at least one of them was new."""
        return len(self.add_all(vertices)) < len(vertices)

    def remove(self, *vertices) -> bool:
        """Removes vertices. Returns True if at least one of them was present."""
        return len(self.remove_all(vertices)) < len(vertices)

    def disconnect(self, v1, v2) -> int:
        """Removes the edges in both directions between v1 and v2. Returns how many were removed."""
        removed = 0
        if self.remove_edge(v1, v2) is not None:
            removed += 1
        if self.remove_edge(v2, v1) is not None:
            removed += 1
        return removed

    def clear_edges(self):
        for source, target in self.edges():
            self.remove_edge(source, target)

    def neighbors(self, source) -> List:
        """Vertices reachable from source by a direct edge."""
        return [vertex for vertex in self.vertices() if self.get(source, vertex) is not None]

    def copy(self) -> "Graph":
        """Shallow copy, vertex and weight objects are shared."""
        return self.subgraph(self.vertices())

    def union(self, other: "Graph"):
        """Joins other onto this graph including edges."""
        if not isinstance(other, Graph):
            raise InvalidArgumentError(f"cannot union a graph with {type(other).__name__}")
        self.add_all(other.vertices())
        for source, target in other.edges():
            weight = other.get(source, target)
            if weight is not None:
                self.set(source, target, weight)

    def path_weight(self, path: Sequence) -> EdgeWeight:
        """Total weight of consecutive edges along path. Infinity if an edge is missing."""
        total = EdgeWeight.zero()
        for source, target in zip(path, path[1:]):
            weight = self.get(source, target)
            if weight is None:
                return EdgeWeight.infinity()
            total = total + weight
        return total

    def depth_first_search(self, source, destination) -> List:
        """Some path from source to destination found depth first, [] if none exists."""
        return self._search(True, source, destination)

    def breadth_first_search(self, source, destination) -> List:
        """Fewest-edge path from source to destination, [] if none exists."""
        return self._search(False, source, destination)

    def _require_endpoints(self, source, destination):
        """Rejects None endpoints, then endpoints missing from the graph."""
        _require(source, "Source")
        _require(destination, "Destination")
        for vertex in (source, destination):
            if not self.contains(vertex):
                raise VertexNotFoundError(vertex)

    def _search(self, depth: bool, source, destination) -> List:
        self._require_endpoints(source, destination)

        work = deque([source])
        prev = HashMap(len(self))
        prev[source] = source
        while work and destination not in prev:
            current = work.popleft()
            for vertex in self.connected(current):
                if vertex in prev:
                    continue
                prev[vertex] = current
                if vertex == destination:
                    break
                if depth:
                    work.appendleft(vertex)
                else:
                    work.append(vertex)

        if destination not in prev:
            return []
        path = deque([destination])
        current = destination
        while current != source:
            current = prev.get(current)
            if current is None or len(path) > len(prev):
                raise InconsistentPathError(f"{destination!r} was reached but its path back to {source!r} is broken")
            path.appendleft(current)
        return list(path)

    def __len__(self):
        return len(self.vertices())

    def __iter__(self):
        """Iterates over the vertices, no order is guaranteed."""
        return iter(self.vertices())

    def __contains__(self, vertex):
        return self.contains(vertex)

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Graph):
            return NotImplemented
        if set(self.vertices()) != set(other.vertices()) or self.edges() != other.edges():
            return False
        return all(self.get(s, t) == other.get(s, t) for s, t in self.edges())

    __hash__ = None

    def __repr__(self):
        return f"{type(self).__name__}({sorted(map(repr, self.edges()))})"


class AdjacencyListGraph(Graph):
    """
    Graph backed by a HashMap of vertex -> (HashMap of neighbor -> weight).
    Shortest paths use Dijkstra's algorithm, or A* with a haversine estimate
    when vertex coordinates are available. Every search keeps its scratch maps
    local, so concurrent read-only queries do not interfere.
    """

    def __init__(self):
        self.adj = HashMap()

    def get(self, source, target):
        _require(source, "Source")
        _require(target, "Destination")
        row = self.adj.get(source)
        if row is None:
            raise VertexNotFoundError(source)
        return row.get(target)

    def set(self, source, target, weight):
        """Sets source -> target, adding either endpoint that does not exist yet."""
        _require(source, "Source")
        _require(target, "Destination")
        if weight is None:
            raise InvalidArgumentError("Edge weight cannot be None")
        if not isinstance(weight, EdgeWeight):
            raise InvalidArgumentError(f"Edge weight must be an EdgeWeight, got {type(weight).__name__}")
        self.adj.put_if_absent(source, HashMap())
        self.adj.put_if_absent(target, HashMap())
        return self.adj[source].put(target, weight)

    def vertices(self):
        return self.adj.keys()

    def edges(self):
        return {(source, target) for source, row in self.adj.items() for target in row}

    def add_all(self, vertices):
        already_present = []
        for vertex in vertices:
            _require(vertex, "Added")
            if vertex in self.adj:
                already_present.append(vertex)
            else:
                self.adj[vertex] = HashMap()
        return already_present

    def remove_all(self, vertices):
        not_present = []
        for vertex in vertices:
            _require(vertex, "Removed")
            if self.adj.remove(vertex) is None:
                not_present.append(vertex)
                continue
            for row in self.adj.values():
                row.remove(vertex)
        return not_present

    def remove_edge(self, source, target):
        _require(source, "Source")
        _require(target, "Destination")
        row = self.adj.get(source)
        if row is None:
            raise VertexNotFoundError(source)
        return row.remove(target)

    def contains(self, vertex):
        return vertex in self.adj

    def count_edges_between(self, v1, v2):
        count = 0
        if v2 in self.adj.get(v1, ()):
            count += 1
        if v1 in self.adj.get(v2, ()):
            count += 1
        return count

    def connected(self, source):
        row = self.adj.get(source)
        if row is None:
            raise VertexNotFoundError(source)
        return row.keys()

    def neighbors(self, source):
        return self.connected(source)

    def subgraph(self, vertices):
        vertices = list(vertices)
        for vertex in vertices:
            if vertex not in self.adj:
                raise InvalidArgumentError(f"Vertex does not exist: {vertex!r}")
        sub = type(self)()
        sub.add_all(vertices)
        for source in vertices:
            for target, weight in self.adj[source].items():
                if target in sub:
                    sub.set(source, target, weight)
        return sub

    def __len__(self):
        return len(self.adj)

    def _relax(self, source, target, estimate: Optional[Callable] = None) -> Tuple[HashMap, HashMap]:
        """
        Runs Dijkstra from source until target is settled or the queue runs dry.
        With an estimate the queue is ordered on cost so far plus estimate(vertex),
        which makes this A*. Returns the (distances, previous) maps of this run.
        """
        self._require_endpoints(source, target)

        infinity = EdgeWeight.infinity()
        distances = HashMap()
        previous = HashMap()
        if estimate is None:
            queue = IndexedPriorityQueue(key=lambda v: distances.get(v, infinity))
        else:
            scores = HashMap()
            queue = IndexedPriorityQueue(key=lambda v: scores.get(v, infinity))
            scores[source] = EdgeWeight.zero() + estimate(source)

        distances[source] = EdgeWeight.zero()
        queue.add(source)
        settled = 0
        while queue:
            current = queue.poll()
            settled += 1
            if current == target:
                break
            current_distance = distances[current]
            for neighbor, weight in self.adj[current].items():
                candidate = current_distance + weight
                if candidate < distances.get(neighbor, infinity):
                    distances[neighbor] = candidate
                    previous[neighbor] = current
                    if estimate is not None:
                        scores[neighbor] = candidate + estimate(neighbor)
                    if neighbor in queue:
                        queue.decrease_key(neighbor)
                    else:
                        queue.add(neighbor)
        logger.debug("%s settled %d of %d vertices searching %r -> %r",
                     "A*" if estimate is not None else "Dijkstra", settled, len(self.adj), source, target)
        return distances, previous

    @staticmethod
    def _reconstruct(previous: HashMap, source, target) -> List:
        """Walks predecessors back from target. [] if target was never reached."""
        path = deque()
        current = target
        while current is not None and current != source:
            path.appendleft(current)
            current = previous.get(current)
        if current is None:
            return []
        path.appendleft(source)
        return list(path)

    def distance(self, source, target):
        distances, _ = self._relax(source, target)
        return distances.get(target, EdgeWeight.infinity())

    def path(self, source, target):
        _, previous = self._relax(source, target)
        return self._reconstruct(previous, source, target)

    def path_astar(self, source, target, coordinates: Mapping, radius: float = EARTH_RADIUS_METERS) -> List:
        """
        Shortest path using A* guided by the great-circle distance to target.
        coordinates maps vertices to (latitude, longitude). The estimate is only
        admissible when edge weights are at least the straight-line distance in
        units of radius, which holds for road lengths in meters by default.
        """
        self._require_endpoints(source, target)
        if coordinates is None:
            raise InvalidArgumentError("Coordinates map cannot be None")
        if source not in coordinates or target not in coordinates:
            raise InvalidArgumentError("Missing coordinates for source or destination vertex")
        dest_lat, dest_lon = coordinates[target]

        def estimate(vertex) -> EdgeWeight:
            position = coordinates.get(vertex)
            if position is None:
                logger.debug("No coordinates for %r, estimating zero", vertex)
                return EdgeWeight.zero()
            return EdgeWeight.from_float(haversine(position[0], position[1], dest_lat, dest_lon, radius))

        _, previous = self._relax(source, target, estimate)
        return self._reconstruct(previous, source, target)
