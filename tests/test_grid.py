"""Tests for the tile grid: zone classification, movement and area scans."""

import json
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import math

import pytest

from oasis.core.enums import Zone
from oasis.core.errors import InvalidInput
from oasis.core.grid import EDGE_OF_WORLD, TileGrid, chebyshev, js_round
from oasis.core.models import Agent
from oasis.core.world_asset import WorldAsset


def _agent(x: int, y: int, energy: float = 100.0) -> Agent:
    return Agent(id="a1", name="Ada", tile_x=x, tile_y=y, energy=energy)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestZoneClassification:
    def test_biome_table(self):
        g = TileGrid.from_rows(["gfdms", "gfdms", "gfdms"])
        assert g.get_zone(0, 1) is Zone.GRASS
        assert g.get_zone(1, 1) is Zone.FOREST
        assert g.get_zone(2, 1) is Zone.SAND
        assert g.get_zone(3, 1) is Zone.ROCKY
        assert g.get_zone(4, 1) is Zone.SWAMP

    def test_land_next_to_ocean_is_coast(self):
        g = TileGrid.from_rows(["ggg", "ggo", "ggg"])
        assert g.get_zone(1, 1) is Zone.COAST
        assert g.get_zone(2, 0) is Zone.COAST
        # diagonal neighbours do not count
        assert g.get_zone(1, 0) is Zone.GRASS

    def test_ocean_is_water_and_impassable(self):
        g = TileGrid.from_rows(["go"])
        assert g.get_zone(1, 0) is Zone.WATER
        assert not g.is_walkable(1, 0)
        assert math.isinf(g.terrain_cost(Zone.WATER))

    def test_lake_and_river_masks_win(self):
        g = TileGrid.from_rows(["ggg"] * 3, rivers={(0, 0): 1}, lakes=[(2, 2)])
        assert g.get_zone(0, 0) is Zone.RIVER
        assert g.get_zone(2, 2) is Zone.RIVER
        assert g.is_walkable(0, 0)

    def test_mid_elevation_mountain_is_cave(self):
        g = TileGrid.from_rows(["mmm"] * 3, elevation=0.65)
        assert g.get_zone(1, 1) is Zone.CAVE

    def test_out_of_bounds_is_not_walkable(self):
        g = TileGrid.uniform(4, 4)
        assert not g.is_walkable(-1, 0)
        assert not g.is_walkable(4, 0)
        assert g.get_tile(9, 9) is None

    def test_spawn_point_moves_off_water(self):
        g = TileGrid.from_rows(["ooo", "ooo", "oog"], spawn=(1, 1))
        assert g.spawn_point == (2, 2)


class TestHelpers:
    def test_js_round_half_up(self):
        assert js_round(2.5) == 3
        assert js_round(-2.5) == -2
        assert js_round(2.4) == 2

    def test_chebyshev(self):
        assert chebyshev(0, 0, 3, -1) == 3
        assert chebyshev(2, 2, 2, 2) == 0


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------

class TestWalk:
    def test_walk_costs_energy_and_updates_zone(self):
        g = TileGrid.from_rows(["gf"])
        a = _agent(0, 0)
        result = g.walk_agent(a, "east")
        assert result.ok
        assert (a.tile_x, a.tile_y) == (1, 0)
        assert a.zone is Zone.FOREST
        # round(2 * 1.3 + 0)
        assert result.move_cost == 3
        assert a.energy == 97

    def test_edge_of_world(self):
        g = TileGrid.uniform(3, 3)
        a = _agent(0, 0)
        result = g.walk_agent(a, "north")
        assert not result.ok
        assert result.error == EDGE_OF_WORLD
        assert (a.tile_x, a.tile_y) == (0, 0)
        assert a.energy == 100

    def test_cannot_walk_into_water(self):
        g = TileGrid.from_rows(["go"])
        a = _agent(0, 0)
        result = g.walk_agent(a, "east")
        assert not result.ok
        assert "Deep Water" in result.error
        assert a.tile_x == 0

    def test_invalid_direction(self):
        g = TileGrid.uniform(3, 3)
        result = g.walk_agent(_agent(1, 1), "up")
        assert result.to_dict() == {"error": "Invalid direction"}

    def test_energy_never_negative(self):
        g = TileGrid.uniform(3, 3)
        a = _agent(1, 1, energy=1)
        assert g.walk_agent(a, "southeast").ok
        assert a.energy == 0

    def test_migrate_relocates_invalid_position(self):
        g = TileGrid.from_rows(["ggo"], spawn=(0, 0))
        a = _agent(2, 0)
        g.migrate_agent_position(a)
        assert (a.tile_x, a.tile_y) == (0, 0)
        assert a.zone is Zone.GRASS


# ---------------------------------------------------------------------------
# Area scans
# ---------------------------------------------------------------------------

class TestArea:
    def test_radius_one_is_a_plus(self):
        g = TileGrid.uniform(10, 10)
        tiles = g.get_tiles_in_radius(5, 5, 1)
        assert len(tiles) == 5

    def test_radius_two_disc(self):
        g = TileGrid.uniform(10, 10)
        assert len(g.get_tiles_in_radius(5, 5, 2)) == 13

    def test_clipped_at_corner(self):
        g = TileGrid.uniform(10, 10)
        tiles = g.get_tiles_in_radius(0, 0, 1)
        assert {(t.x, t.y) for t in tiles} == {(0, 0), (1, 0), (0, 1)}

    def test_nearby_agents_skip_dead(self):
        a = _agent(1, 1)
        b = Agent(id="b", name="Bo", tile_x=2, tile_y=2)
        c = Agent(id="c", name="Cy", tile_x=2, tile_y=1, alive=False)
        found = TileGrid.get_agents_nearby([a, b, c], 1, 1, 1)
        assert [x.id for x in found] == ["a1", "b"]


# ---------------------------------------------------------------------------
# World asset
# ---------------------------------------------------------------------------

class TestWorldAsset:
    def _asset(self, w=4, h=3):
        return {
            "width": w,
            "height": h,
            "terrain": [1] * (w * h),
            "tileDefs": [{"id": 0, "biome": "ocean"}, {"id": 1, "biome": "grassland"}],
            "seed": "test",
        }

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "world.json"
        path.write_text(json.dumps(self._asset()))
        asset = WorldAsset.load(path)
        assert (asset.width, asset.height) == (4, 3)
        grid = TileGrid.from_asset(asset)
        assert grid.is_walkable(*grid.spawn_point)

    def test_terrain_length_mismatch(self):
        data = self._asset()
        data["terrain"] = [1, 1]
        with pytest.raises(InvalidInput):
            WorldAsset.from_dict(data)

    def test_missing_keys(self):
        with pytest.raises(InvalidInput):
            WorldAsset.from_dict({"width": 2})
