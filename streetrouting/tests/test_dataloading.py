import logging

import pytest

from streetrouting.__main__ import SAMPLE_MAP, main
from streetrouting.entities import Intersection, Road
from streetrouting.errors import InvalidArgumentError, MapFormatError, VertexNotFoundError
from streetrouting.streetmap import load_map


@pytest.fixture(scope="session")
def setup():
    yield load_map(SAMPLE_MAP)


def test_intersections(setup):
    street_map = setup
    assert len(street_map.graph) == 10
    assert street_map.intersection("A") == Intersection("A", 43.1566, -77.6088)
    with pytest.raises(VertexNotFoundError):
        street_map.intersection("nowhere")


def test_roads_are_two_way(setup):
    graph = setup.graph
    a, b = setup.intersection("A"), setup.intersection("B")
    assert graph.count_edges_between(a, b) == 2
    road = graph.get(a, b)
    assert isinstance(road, Road)
    assert road.road_id == "R1"
    assert 700 < road.distance < 900


def test_short_trip_uses_dijkstra(setup, caplog):
    caplog.set_level(logging.INFO, logger="streetrouting")
    path = setup.find_path("A", "C")
    assert [str(i) for i in path] == ["A", "B", "C"]
    assert "A*" not in caplog.text


def test_long_trip_uses_astar(setup, caplog):
    caplog.set_level(logging.INFO, logger="streetrouting")
    path = setup.find_path("A", "ALB2")
    assert "Switching to A*" in caplog.text
    assert str(path[0]) == "A" and str(path[-1]) == "ALB2"
    source, target = setup.intersection("A"), setup.intersection("ALB2")
    assert setup.route_length(path).weight == pytest.approx(setup.graph.distance(source, target).weight)


def test_isolated_intersection(setup):
    assert setup.find_path("A", "Z") == []


def test_legs(setup):
    path = setup.find_path("A", "C")
    legs = setup.legs(path)
    assert [road.road_id for _, _, road in legs] == ["R1", "R2"]
    assert setup.route_length(path).weight == pytest.approx(sum(road.distance for _, _, road in legs))


def test_road_to_missing_intersection(tmp_path):
    map_file = tmp_path / "broken.map"
    map_file.write_text("i\tA\t43.0\t-77.0\nr\tR1\tA\tB\n")
    with pytest.raises(MapFormatError, match="line 2"):
        load_map(str(map_file))


def test_bad_coordinates(tmp_path):
    map_file = tmp_path / "broken.map"
    map_file.write_text("i\tA\tnorth\t-77.0\n")
    with pytest.raises(MapFormatError, match="line 1"):
        load_map(str(map_file))


def test_astar_threshold_is_configurable(caplog):
    caplog.set_level(logging.INFO, logger="streetrouting")
    street_map = load_map(SAMPLE_MAP, astar_threshold=0)
    assert [str(i) for i in street_map.find_path("A", "C")] == ["A", "B", "C"]
    assert "Switching to A*" in caplog.text


def test_main_prints_route(capsys):
    assert main(["A", "C"]) == 0
    out = capsys.readouterr().out
    assert "A -> B via R1" in out
    assert "Total:" in out


def test_main_without_route(capsys):
    assert main(["A", "Z"]) == 2
    assert "No path" in capsys.readouterr().out


def test_main_errors(capsys, tmp_path):
    assert main(["A", "nowhere"]) == 1
    assert "nowhere" in capsys.readouterr().err
    assert main(["--map", str(tmp_path / "missing.map"), "A", "B"]) == 1
    assert "Error loading map" in capsys.readouterr().err


def test_find_route_through_stops(setup):
    path = setup.find_route("A", "C", "D")
    assert [str(i) for i in path] == ["A", "B", "C", "D"]
    assert [str(i) for i in setup.find_route("A", "C")] == ["A", "B", "C"]


def test_find_route_with_unreachable_stop(setup):
    assert setup.find_route("A", "Z", "C") == []
    with pytest.raises(VertexNotFoundError):
        setup.find_route("A", "nowhere", "C")


def test_find_route_needs_two_stops(setup):
    with pytest.raises(InvalidArgumentError):
        setup.find_route("A")


def test_road_lookup(setup):
    a, b, road = setup.road("R1")
    assert road.road_id == "R1"
    assert {str(a), str(b)} == {"A", "B"}
    with pytest.raises(VertexNotFoundError):
        setup.road("nope")


def test_roads_at(setup):
    roads = setup.roads_at("C")
    assert {str(neighbor) for neighbor, _ in roads} == {"B", "D", "SYR"}
    assert {road.road_id for _, road in roads} == {"R2", "R5", "I90a"}
    assert setup.roads_at("Z") == []


def test_windows_line_endings(tmp_path):
    map_file = tmp_path / "crlf.map"
    map_file.write_bytes(b"i\tA\t43.0\t-77.0\r\ni\tB\t43.1\t-77.0\r\nr\tR1\tA\tB\r\n")
    street_map = load_map(str(map_file))
    assert [str(i) for i in street_map.find_path("A", "B")] == ["A", "B"]
    assert street_map.road("R1")[2].road_id == "R1"


def test_main_prints_route_through_stops(capsys):
    assert main(["A", "C", "D"]) == 0
    out = capsys.readouterr().out
    assert "A -> B via R1" in out
    assert "C -> D via R5" in out


def test_main_road_and_intersection(capsys):
    assert main(["--road", "R1"]) == 0
    out = capsys.readouterr().out
    assert "Road R1" in out and "connects" in out
    assert main(["--intersection", "C"]) == 0
    out = capsys.readouterr().out
    assert "Intersection C" in out and "via I90a" in out
    assert main(["--road", "nope"]) == 1
    assert "nope" in capsys.readouterr().err


def test_main_needs_two_stops():
    with pytest.raises(SystemExit):
        main(["A"])


def test_main_unreadable_map(capsys, tmp_path):
    assert main(["--map", str(tmp_path), "A", "B"]) == 1
    assert "Error loading map" in capsys.readouterr().err
    binary = tmp_path / "binary.map"
    binary.write_bytes(b"\xff\xfe\x00i\tA\t\x80\n")
    assert main(["--map", str(binary), "A", "B"]) == 1
    assert "Error loading map" in capsys.readouterr().err
