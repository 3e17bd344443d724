"""Tests for location id encoding, decoding and adjacency."""

import math

import pytest

from unl_core.codec import (
    DecodedLocation,
    ElevatedLocationId,
    adjacent,
    append_elevation,
    bounds,
    clamp_coords,
    decode,
    encode,
    exclude_elevation,
    grid_lines,
    is_location_id,
    neighbours,
    validate_coords,
)
from unl_core.errors import (
    InvalidCellId,
    InvalidCoordinate,
    InvalidDirection,
    PrecisionOutOfRange,
    UnlCoreError,
)
from unl_core.quadtree import BoundingBox, LatLon


class TestEncode:
    """Tests for encode()."""

    def test_encode_jutland(self):
        """Test a known location id."""
        assert encode(57.648, 10.410, 6) == "u4pruy"

    def test_encode_curitiba(self):
        """Test a location in the southern/western hemisphere."""
        assert encode(-25.38262, -49.26561, 8) == "6gkzwgjz"

    def test_encode_matches_geohash_org(self):
        """Test a 12 character id."""
        assert encode(37.25, 123.75, 12) == "wy85bj0hbp21"

    def test_encode_floor(self):
        """Test floor elevation suffix."""
        assert encode(57.648, 10.410, 6, elevation=5) == "u4pruy@5"

    def test_encode_height(self):
        """Test heightincm elevation suffix."""
        assert encode(57.648, 10.410, 6, elevation=87, elevation_type="heightincm") == "u4pruy#87"

    def test_encode_zero_elevation_omitted(self):
        """Test that elevation 0 is never written."""
        assert encode(57.648, 10.410, 6, elevation=0, elevation_type="heightincm") == "u4pruy"

    def test_encode_length_matches_precision(self):
        """Test every supported precision."""
        for precision in range(1, 17):
            assert len(encode(52.3718, 4.8983, precision)) == precision

    def test_encode_prefix_property(self):
        """Test that a shorter id is a prefix of a longer one for the same point."""
        long_id = encode(-33.8688, 151.2093, 12)
        for precision in range(1, 12):
            assert long_id.startswith(encode(-33.8688, 151.2093, precision))

    def test_encode_auto_precision_finds_exact_id(self):
        """Test that omitting precision picks the shortest id decoding to the point."""
        location_id = encode(57.648, 10.41)
        assert len(location_id) <= 6
        position = decode(location_id)
        assert (position.lat, position.lon) == (57.648, 10.41)

    def test_encode_auto_precision_falls_back_to_nine(self):
        """Test the fallback precision when no short id decodes exactly."""
        assert len(encode(1.23456789, 2.3456789)) == 9

    def test_encode_world_corners(self):
        """Test the extreme corners of the world."""
        assert encode(-90, -180, 1) == "0"
        assert encode(90, 180, 1) == "z"

    def test_encode_invalid_latitude(self):
        """Test latitude out of range."""
        with pytest.raises(InvalidCoordinate):
            encode(91, 0, 5)

    def test_encode_invalid_longitude(self):
        """Test longitude out of range."""
        with pytest.raises(InvalidCoordinate):
            encode(0, -180.5, 5)

    def test_encode_nan(self):
        """Test non-finite coordinates."""
        with pytest.raises(InvalidCoordinate):
            encode(math.nan, 0, 5)
        with pytest.raises(InvalidCoordinate):
            encode(0, math.inf, 5)

    def test_encode_not_a_number(self):
        """Test non-numeric coordinates."""
        with pytest.raises(InvalidCoordinate):
            encode("north", 0, 5)

    def test_encode_accepts_numeric_strings(self):
        """Test coercion of numeric strings."""
        assert encode("57.648", "10.410", 6) == "u4pruy"

    def test_encode_precision_out_of_range(self):
        """Test precision outside 1..16."""
        with pytest.raises(PrecisionOutOfRange):
            encode(0, 0, 0)
        with pytest.raises(PrecisionOutOfRange):
            encode(0, 0, 17)

    def test_encode_invalid_elevation_type(self):
        """Test unknown elevation type."""
        with pytest.raises(ValueError):
            encode(0, 0, 5, elevation=3, elevation_type="metres")

    def test_errors_are_value_errors(self):
        """Test that every error kind can be caught as ValueError."""
        with pytest.raises(ValueError):
            encode(100, 0, 5)
        with pytest.raises(UnlCoreError):
            encode(0, 0, 20)


class TestDecode:
    """Tests for decode()."""

    def test_decode_jutland(self):
        """Test decoding to the rounded cell centre."""
        assert decode("u4pruy") == DecodedLocation(
            lat=57.648,
            lon=10.41,
            elevation=0,
            elevation_type="floor",
            bounds=bounds("u4pruy"),
        )

    def test_decode_curitiba(self):
        """Test decoding an 8 character id."""
        position = decode("6gkzwgjz")
        assert position.lat == -25.38262
        assert position.lon == -49.26561

    def test_decode_floor(self):
        """Test decoding a floor suffix."""
        position = decode("u4pruy@3")
        assert (position.lat, position.lon) == (57.648, 10.41)
        assert position.elevation == 3
        assert position.elevation_type == "floor"

    def test_decode_height(self):
        """Test decoding a heightincm suffix."""
        position = decode("6gkzwgjz#90")
        assert (position.lat, position.lon) == (-25.38262, -49.26561)
        assert position.elevation == 90
        assert position.elevation_type == "heightincm"

    def test_decode_zero_height_keeps_type(self):
        """Test that an explicit #0 suffix keeps the heightincm type."""
        position = decode("u4pruy#0")
        assert position.elevation == 0
        assert position.elevation_type == "heightincm"

    def test_decode_zero_floor(self):
        """Test an explicit @0 suffix."""
        position = decode("u4pruy@0")
        assert position.elevation == 0
        assert position.elevation_type == "floor"

    def test_decode_is_case_insensitive(self):
        """Test uppercase ids."""
        assert decode("U4PRUY") == decode("u4pruy")

    def test_decode_centre_is_inside_cell(self):
        """Test that the rounded centre stays within the cell."""
        for location_id in ("u", "u4", "6gkzw", "wy85bj0hbp21", "0000000000000000"):
            position = decode(location_id)
            assert position.bounds.contains(position.lat, position.lon)

    def test_decode_encode_round_trip(self):
        """Test that encoding the decoded centre gives the same id."""
        for location_id in ("u4pruy", "6gkzwgjz", "drss5nr9y", "wy85bj0hbp21"):
            position = decode(location_id)
            assert encode(position.lat, position.lon, len(location_id)) == location_id

    def test_decode_empty(self):
        """Test empty id."""
        with pytest.raises(InvalidCellId):
            decode("")

    def test_decode_invalid_character(self):
        """Test characters outside the alphabet."""
        with pytest.raises(InvalidCellId):
            decode("u4pa")

    def test_decode_invalid_elevation(self):
        """Test a non-numeric elevation."""
        with pytest.raises(InvalidCellId):
            decode("u4pruy@high")

    def test_decode_both_markers(self):
        """Test an id carrying both elevation markers."""
        with pytest.raises(InvalidCellId):
            decode("u4pruy@1#2")


class TestBounds:
    """Tests for bounds()."""

    def test_bounds_single_char(self):
        """Test first-level cells."""
        box = bounds("u")
        assert box.sw == LatLon(45.0, 0.0)
        assert box.ne == LatLon(90.0, 45.0)

        box = bounds("0")
        assert box.sw == LatLon(-90.0, -180.0)
        assert box.ne == LatLon(-45.0, -135.0)

    def test_bounds_contains_encoded_point(self):
        """Test that a point lies inside the cell it encodes to."""
        box = bounds(encode(57.648, 10.410, 6))
        assert box.contains(57.648, 10.410)

    def test_bounds_children_tile_parent(self):
        """Test that sub-cells share the parent's outer edges."""
        parent = bounds("u4pr")
        assert bounds("u4pr0").sw == parent.sw
        assert bounds("u4prz").ne == parent.ne

    def test_bounds_carries_elevation(self):
        """Test elevation passed through to the bounding box."""
        box = bounds("u4pruy#87")
        assert box.elevation == 87
        assert box.elevation_type == "heightincm"
        assert box.sw == bounds("u4pruy").sw

    def test_bounds_invalid(self):
        """Test invalid characters."""
        with pytest.raises(InvalidCellId):
            bounds("u4po")


class TestElevation:
    """Tests for elevation suffix helpers."""

    def test_exclude_floor(self):
        """Test splitting a floor suffix."""
        assert exclude_elevation("6gkzwgjz@5") == ElevatedLocationId("6gkzwgjz", 5, "floor")

    def test_exclude_height(self):
        """Test splitting a heightincm suffix."""
        assert exclude_elevation("6gkzwgjz#87") == ElevatedLocationId("6gkzwgjz", 87, "heightincm")

    def test_exclude_none(self):
        """Test an id without suffix."""
        assert exclude_elevation("6gkzwgjz") == ElevatedLocationId("6gkzwgjz", 0, "floor")

    def test_exclude_negative(self):
        """Test a basement floor."""
        assert exclude_elevation("6gkzwgjz@-2").elevation == -2

    def test_append_floor(self):
        """Test appending a floor."""
        assert append_elevation("6gkzwgjz", 5) == "6gkzwgjz@5"

    def test_append_height(self):
        """Test appending a height."""
        assert append_elevation("6gkzwgjz", 87, "heightincm") == "6gkzwgjz#87"

    def test_append_zero(self):
        """Test that elevation 0 leaves the id unchanged."""
        assert append_elevation("6gkzwgjz", 0) == "6gkzwgjz"
        assert append_elevation("6gkzwgjz", 0, "heightincm") == "6gkzwgjz"

    def test_append_invalid_type(self):
        """Test unknown elevation type."""
        with pytest.raises(ValueError):
            append_elevation("6gkzwgjz", 1, "storey")

    def test_append_fractional_elevation(self):
        """Test that a fractional elevation is rejected, not truncated."""
        with pytest.raises(ValueError):
            append_elevation("6gkzwgjz", 1.5)
        assert append_elevation("6gkzwgjz", 2.0) == "6gkzwgjz@2"

    def test_is_location_id(self):
        """Test textual validation."""
        assert is_location_id("u4pruy")
        assert is_location_id("u4pruy@5")
        assert is_location_id("u4pruy#-20")
        assert not is_location_id("")
        assert not is_location_id("u4pa")
        assert not is_location_id("u" * 17)
        assert not is_location_id(None)

    def test_is_location_id_any_case(self):
        """Test that upper case ids are accepted, as decode() accepts them."""
        assert is_location_id("U4PRUY")
        assert is_location_id("U4pruY@5")
        assert decode("U4PRUY") == decode("u4pruy")
        assert not is_location_id("U4PA")


class TestAdjacent:
    """Tests for adjacent() and neighbours()."""

    def test_adjacent_north_crosses_parent(self):
        """Test a move that changes the parent cell."""
        assert adjacent("ezzz@5", "n") == "gbpb@5"

    def test_adjacent_accepts_uppercase_direction(self):
        """Test direction parsing."""
        assert adjacent("ezzz", "N") == "gbpb"

    def test_adjacent_inverse(self):
        """Test that moving back returns to the start."""
        for direction, opposite in (("n", "s"), ("s", "n"), ("e", "w"), ("w", "e")):
            assert adjacent(adjacent("u4pruy", direction), opposite) == "u4pruy"

    def test_adjacent_keeps_precision(self):
        """Test that adjacent cells have the same length."""
        for direction in "nsew":
            assert len(adjacent("wy85bj0hbp21", direction)) == 12

    def test_adjacent_shares_edge(self):
        """Test that the north neighbour starts where the cell ends."""
        assert bounds(adjacent("u4pruy", "n")).sw.lat == bounds("u4pruy").ne.lat
        assert bounds(adjacent("u4pruy", "e")).sw.lon == bounds("u4pruy").ne.lon

    def test_adjacent_invalid_direction(self):
        """Test unknown direction."""
        with pytest.raises(InvalidDirection):
            adjacent("ezzz", "up")

    def test_adjacent_empty(self):
        """Test empty id."""
        with pytest.raises(InvalidCellId):
            adjacent("", "n")

    def test_adjacent_invalid_character(self):
        """Test invalid characters."""
        with pytest.raises(InvalidCellId):
            adjacent("ezzi", "n")

    def test_neighbours(self):
        """Test all 8 neighbours."""
        assert neighbours("ezzz") == {
            "n": "gbpb",
            "ne": "u000",
            "e": "spbp",
            "se": "spbn",
            "s": "ezzy",
            "sw": "ezzw",
            "w": "ezzx",
            "nw": "gbp8",
        }

    def test_neighbours_floor(self):
        """Test that neighbours keep a floor suffix."""
        result = neighbours("ezzz@5")
        assert result["n"] == "gbpb@5"
        assert result["ne"] == "u000@5"
        assert result["nw"] == "gbp8@5"

    def test_neighbours_height(self):
        """Test that neighbours keep a heightincm suffix."""
        result = neighbours("ezzz#87")
        assert result["se"] == "spbn#87"
        assert result["w"] == "ezzx#87"


class TestGridLines:
    """Tests for grid_lines()."""

    def test_grid_inside_cell(self):
        """Test the grid of one cell's sub-cells."""
        box = bounds("u4pruy")
        lines = grid_lines(box, 7)

        horizontal = [line for line in lines if line[0][1] == line[1][1]]
        vertical = [line for line in lines if line[0][0] == line[1][0]]

        # 7th character splits into 8 columns and 4 rows
        assert len(horizontal) == 4
        assert len(vertical) == 8
        assert lines[:4] == horizontal
        assert horizontal[-1] == ((box.sw.lon, box.ne.lat), (box.ne.lon, box.ne.lat))

    def test_grid_terminates_at_pole(self):
        """Test a box touching the north pole."""
        box = BoundingBox(LatLon(80.0, 0.0), LatLon(90.0, 10.0))
        lines = grid_lines(box, 2)
        assert 0 < len(lines) < 20

    def test_grid_terminates_at_antimeridian(self):
        """Test a box touching the antimeridian."""
        box = BoundingBox(LatLon(0.0, 170.0), LatLon(10.0, 180.0))
        lines = grid_lines(box, 2)
        assert 0 < len(lines) < 20


class TestCoordinateHelpers:
    """Tests for coordinate validation helpers."""

    def test_clamp_coords(self):
        """Test clamping to valid ranges."""
        assert clamp_coords(91.0, -181.0) == (90.0, -180.0)
        assert clamp_coords(10.0, 20.0) == (10.0, 20.0)

    def test_validate_coords(self):
        """Test coercion and validation."""
        assert validate_coords(1, "2") == (1.0, 2.0)
        with pytest.raises(InvalidCoordinate):
            validate_coords(None, 0)
