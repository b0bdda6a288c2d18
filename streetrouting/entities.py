import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import total_ordering


@total_ordering
class EdgeWeight(ABC):
    """
    Weight/distance that can be summed with other weights and compared.
    Addition saturates: anything plus infinity is infinity.
    """

    @property
    @abstractmethod
    def weight(self) -> float:
        raise NotImplementedError

    @staticmethod
    def zero() -> "Distance":
        return Distance(0.0)

    @staticmethod
    def infinity() -> "Distance":
        return Distance(math.inf)

    @staticmethod
    def from_float(weight: float) -> "Distance":
        return Distance(weight)

    def is_infinite(self) -> bool:
        return self.weight == math.inf

    def __add__(self, other: "EdgeWeight") -> "Distance":
        if not isinstance(other, EdgeWeight):
            return NotImplemented
        if self.is_infinite() or other.is_infinite():
            return EdgeWeight.infinity()
        return Distance(self.weight + other.weight)

    def __eq__(self, other):
        if isinstance(other, EdgeWeight):
            return self.weight == other.weight
        if isinstance(other, (int, float)):
            return self.weight == other
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, EdgeWeight):
            return self.weight < other.weight
        if isinstance(other, (int, float)):
            return self.weight < other
        return NotImplemented

    def __hash__(self):
        return hash(self.weight)

    def __float__(self):
        return float(self.weight)


class Distance(EdgeWeight):
    """Plain float valued weight."""
    __slots__ = ("_weight",)

    def __init__(self, weight: float):
        self._weight = float(weight)

    @property
    def weight(self) -> float:
        return self._weight

    def __repr__(self):
        return f"Distance({self._weight!r})"


class Road(Distance):
    """Road models a named street segment whose weight is its length in meters."""
    __slots__ = ("road_id",)

    def __init__(self, road_id: str, distance: float):
        super().__init__(distance)
        self.road_id: str = road_id

    @property
    def distance(self) -> float:
        return self.weight

    def __repr__(self):
        return f"Road({self.road_id!r}, {self.weight!r})"

    def __str__(self):
        return self.road_id


@dataclass(frozen=True)
class Intersection:
    """Intersection models a map vertex with its geographic position."""
    intersection_id: str
    latitude: float
    longitude: float

    @property
    def coordinates(self):
        return self.latitude, self.longitude

    def __str__(self):
        return self.intersection_id
