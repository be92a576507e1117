"""Tests for render_grid.py - RenderGrid container and layer composition."""

import json
import numpy as np
import pytest

from ledmap.coords import Point
from ledmap.errors import EmptyLevelError, LevelNotFoundError
from ledmap.project import (
    AutoTileRule, EntityInstance, GridTile, IntGridCoordinate,
    LayerInstance, Level, Project,
)
from ledmap.render_grid import (
    RenderCell, RenderGrid, TILE_SIZE, level_render_grids, to_merged_render_grid,
)


def make_layer(identifier="Layer", width=2, height=2, auto_tiles=(), grid_tiles=(), layer_type="Tiles", **kwargs):
    return LayerInstance(
        identifier=identifier,
        layer_type=layer_type,
        grid_width=width,
        grid_height=height,
        level_id=0,
        layer_def_uid=1,
        px_offset_x=0,
        px_offset_y=0,
        seed=0,
        auto_tiles=tuple(auto_tiles),
        grid_tiles=tuple(grid_tiles),
        **kwargs,
    )


def make_project(*levels):
    return Project(
        name="Test",
        bg_color="#000000",
        json_version="1",
        default_pivot_x=0.0,
        default_pivot_y=0.0,
        levels=tuple(levels),
    )


def make_level(*layers, identifier="Level_0"):
    return Level(identifier=identifier, px_wid=32, px_hei=32, layer_instances=tuple(layers))


def tile(coord_id, tile_id, tile_x=0, tile_y=0, flips=None):
    return GridTile(coord_id=coord_id, tile_id=tile_id, tile_x=tile_x, tile_y=tile_y, flips=flips)


class TestRenderGrid:
    """Test the RenderGrid container."""

    def test_new_grid_is_empty(self):
        """Every cell starts empty with tile id 0."""
        grid = RenderGrid(6, Point(16, 16), Point(3, 2))

        assert len(grid) == 6
        for cell in grid.tiles:
            assert cell.is_empty
            assert cell.tile_id == 0
            assert cell.atlas_pos == Point(0, 0)

    def test_get_tile_addresses_row_major(self):
        """get_tile reads the cell at x + y * width."""
        grid = RenderGrid(6, Point(16, 16), Point(3, 2))
        grid._place(tile(coord_id=4, tile_id=7))

        assert grid.get_tile(1, 1).tile_id == 7
        assert grid.get_tile(1, 0).is_empty

    def test_get_tile_out_of_range(self):
        """Out-of-range coordinates raise IndexError."""
        grid = RenderGrid(6, Point(16, 16), Point(3, 2))

        with pytest.raises(IndexError):
            grid.get_tile(3, 0)
        with pytest.raises(IndexError):
            grid.get_tile(0, 2)
        with pytest.raises(IndexError):
            grid.get_tile(-1, 0)

    def test_rows(self):
        """rows() yields height rows of width cells each."""
        grid = RenderGrid(6, Point(16, 16), Point(3, 2))
        grid._place(tile(coord_id=3, tile_id=1))

        rows = list(grid.rows())

        assert len(rows) == 2
        assert all(len(row) == 3 for row in rows)
        assert rows[1][0].tile_id == 1
        assert rows[0][0].is_empty

    def test_rows_restartable(self):
        """Iterating rows twice gives the same result."""
        grid = RenderGrid(4, Point(16, 16), Point(2, 2))
        grid._place(tile(coord_id=1, tile_id=2))

        assert list(grid.rows()) == list(grid.rows())

    def test_tile_id_array(self):
        """tile_id_array marks empty cells with -1."""
        grid = RenderGrid(4, Point(16, 16), Point(2, 2))
        grid._place(tile(coord_id=0, tile_id=5))
        grid._place(tile(coord_id=3, tile_id=0))

        np.testing.assert_array_equal(grid.tile_id_array(), np.array([[5, -1], [-1, 0]]))

    def test_tiles_not_mutable(self):
        """tiles is a read-only snapshot of the cells."""
        grid = RenderGrid(2, Point(16, 16), Point(2, 1))

        assert isinstance(grid.tiles, tuple)
        with pytest.raises(TypeError):
            grid.tiles[0] = RenderCell(is_empty=False, tile_id=1)

    def test_place_rejects_coord_outside_grid(self):
        """Negative or too-large coord ids raise instead of wrapping."""
        grid = RenderGrid(2, Point(16, 16), Point(2, 1))

        with pytest.raises(IndexError):
            grid._place(tile(coord_id=-1, tile_id=7))
        with pytest.raises(IndexError):
            grid._place(tile(coord_id=2, tile_id=7))
        assert grid.non_empty_count() == 0

    def test_to_json(self):
        """Grid serializes sizes and cells."""
        grid = RenderGrid(2, Point(16, 16), Point(2, 1))
        grid._place(tile(coord_id=1, tile_id=3, tile_x=1, tile_y=2, flips=1))

        parsed = json.loads(grid.to_json())

        assert parsed["grid_size"] == [2, 1]
        assert parsed["tile_size"] == [16, 16]
        assert parsed["tiles"][0]["is_empty"] is True
        assert parsed["tiles"][1] == {"is_empty": False, "tile_id": 3, "atlas_pos": [1, 2], "flips": 1}


class TestRenderCell:
    """Test RenderCell flip helpers."""

    def test_flips(self):
        assert RenderCell(flips=1).flip_x
        assert not RenderCell(flips=1).flip_y
        assert RenderCell(flips=3).flip_x and RenderCell(flips=3).flip_y


class TestMergedRenderGrid:
    """Test composing a level's layers into one grid."""

    def test_single_explicit_tile(self):
        """One grid tile lands in its cell; the other cell stays empty."""
        layer = make_layer(width=2, height=1, grid_tiles=[tile(0, 5)])
        project = make_project(make_level(layer))

        grid = to_merged_render_grid(project, 0)

        assert grid.tiles[0].is_empty is False
        assert grid.tiles[0].tile_id == 5
        assert grid.tiles[1].is_empty is True
        assert grid.tile_size == Point(TILE_SIZE, TILE_SIZE)
        assert grid.grid_size == Point(2, 1)

    def test_first_declared_layer_wins(self):
        """An auto tile in the top layer beats a grid tile in a lower layer."""
        top = make_layer("Top", 1, 1, auto_tiles=[AutoTileRule(rule_id=1, tiles=(tile(0, 9),))])
        bottom = make_layer("Bottom", 1, 1, grid_tiles=[tile(0, 3)])
        project = make_project(make_level(top, bottom))

        grid = to_merged_render_grid(project, 0)

        assert grid.tiles[0].tile_id == 9

    def test_priority_across_three_layers(self):
        """Each cell takes the value of the earliest layer that wrote it."""
        l0 = make_layer("L0", 3, 1, grid_tiles=[tile(0, 10)])
        l1 = make_layer("L1", 3, 1, grid_tiles=[tile(0, 20), tile(1, 21)])
        l2 = make_layer("L2", 3, 1, grid_tiles=[tile(0, 30), tile(1, 31), tile(2, 32)])
        project = make_project(make_level(l0, l1, l2))

        grid = to_merged_render_grid(project, 0)

        assert [cell.tile_id for cell in grid.tiles] == [10, 21, 32]

    def test_grid_tile_beats_auto_tile_in_same_layer(self):
        """Within one layer, explicit tiles are painted after auto tiles."""
        layer = make_layer(
            width=1, height=1,
            auto_tiles=[AutoTileRule(rule_id=1, tiles=(tile(0, 1),))],
            grid_tiles=[tile(0, 2)],
        )
        project = make_project(make_level(layer))

        assert to_merged_render_grid(project, 0).tiles[0].tile_id == 2

    def test_later_rule_overwrites_earlier_rule(self):
        """Auto tile rules are applied in order within a layer."""
        layer = make_layer(
            width=1, height=1,
            auto_tiles=[
                AutoTileRule(rule_id=1, tiles=(tile(0, 1),)),
                AutoTileRule(rule_id=2, tiles=(tile(0, 2),)),
            ],
        )
        project = make_project(make_level(layer))

        assert to_merged_render_grid(project, 0).tiles[0].tile_id == 2

    def test_atlas_position_uses_tile_row(self):
        """atlas_pos is (tile_x, tile_y) for both auto and grid tiles."""
        layer = make_layer(
            width=2, height=1,
            auto_tiles=[AutoTileRule(rule_id=1, tiles=(tile(0, 4, tile_x=1, tile_y=3),))],
            grid_tiles=[tile(1, 6, tile_x=2, tile_y=5, flips=2)],
        )
        project = make_project(make_level(layer))

        grid = to_merged_render_grid(project, 0)

        assert grid.get_tile(0, 0).atlas_pos == Point(1, 3)
        assert grid.get_tile(1, 0).atlas_pos == Point(2, 5)
        assert grid.get_tile(1, 0).flip_y
        assert grid.get_tile(0, 0).flips == 0

    def test_int_grid_and_entities_ignored(self):
        """Int grid values and entities never produce tiles."""
        layer = make_layer(
            width=2, height=1,
            layer_type="IntGrid",
            int_grid=(IntGridCoordinate(coord_id=0, v=1),),
            entity_instances=(
                EntityInstance(identifier="Hero", cx=1, cy=0, def_uid=1, x=16, y=0),
            ),
        )
        project = make_project(make_level(layer))

        grid = to_merged_render_grid(project, 0)

        assert grid.non_empty_count() == 0

    def test_untouched_cells_empty(self):
        """Cells not written by any layer stay empty with tile id 0."""
        layer = make_layer(width=3, height=3, grid_tiles=[tile(4, 8)])
        project = make_project(make_level(layer))

        grid = to_merged_render_grid(project, 0)

        for coord_id, cell in enumerate(grid.tiles):
            if coord_id == 4:
                continue
            assert cell.is_empty
            assert cell.tile_id == 0

    def test_composition_is_deterministic(self):
        """Composing the same level twice gives identical cells."""
        top = make_layer("Top", 2, 2, auto_tiles=[AutoTileRule(rule_id=1, tiles=(tile(0, 1), tile(3, 2)))])
        bottom = make_layer("Bottom", 2, 2, grid_tiles=[tile(0, 7), tile(1, 8)])
        project = make_project(make_level(top, bottom))

        assert to_merged_render_grid(project, 0).tiles == to_merged_render_grid(project, 0).tiles

    def test_selects_requested_level(self):
        """The level index picks the level to compose."""
        first = make_level(make_layer(width=1, height=1, grid_tiles=[tile(0, 1)]), identifier="A")
        second = make_level(make_layer(width=2, height=1, grid_tiles=[tile(1, 2)]), identifier="B")
        project = make_project(first, second)

        grid = to_merged_render_grid(project, 1)

        assert grid.grid_size == Point(2, 1)
        assert grid.get_tile(1, 0).tile_id == 2


class TestMergedRenderGridErrors:
    """Test composition failures."""

    def test_level_index_out_of_range(self):
        """Requesting a missing level fails with index and count."""
        project = make_project(make_level(make_layer()), make_level(make_layer()))

        with pytest.raises(LevelNotFoundError) as exc_info:
            to_merged_render_grid(project, 5)

        assert exc_info.value.index == 5
        assert exc_info.value.count == 2

    def test_level_index_equal_to_count(self):
        """Index equal to the level count is out of range."""
        project = make_project(make_level(make_layer()))

        with pytest.raises(LevelNotFoundError):
            to_merged_render_grid(project, 1)

    def test_negative_level_index(self):
        """Negative indices are not wrapped around."""
        project = make_project(make_level(make_layer()))

        with pytest.raises(LevelNotFoundError):
            to_merged_render_grid(project, -1)

    def test_level_without_layers(self):
        """A level with no layers cannot be composed."""
        project = make_project(make_level(identifier="Empty"))

        with pytest.raises(EmptyLevelError, match="Empty"):
            to_merged_render_grid(project, 0)

    def test_not_found_is_lookup_error(self):
        """LevelNotFoundError can be caught as LookupError."""
        with pytest.raises(LookupError):
            to_merged_render_grid(make_project(), 0)


    def test_negative_coord_id_in_layer(self):
        """A tile with a negative coord id fails composition."""
        layer = make_layer(width=2, height=1, grid_tiles=[tile(-1, 7)])
        project = make_project(make_level(layer))

        with pytest.raises(IndexError):
            to_merged_render_grid(project, 0)

    def test_coord_id_past_end_of_grid(self):
        """A tile past the last cell fails composition."""
        layer = make_layer(width=2, height=1, auto_tiles=[AutoTileRule(rule_id=1, tiles=(tile(2, 7),))])
        project = make_project(make_level(layer))

        with pytest.raises(IndexError):
            to_merged_render_grid(project, 0)


class TestLevelRenderGrids:
    """Test composing all levels."""

    def test_skips_empty_levels(self):
        project = make_project(
            make_level(make_layer(width=1, height=1, grid_tiles=[tile(0, 1)]), identifier="A"),
            make_level(identifier="B"),
            make_level(make_layer(width=1, height=1), identifier="C"),
        )

        results = list(level_render_grids(project))

        assert [(index, lvl.identifier) for index, lvl, _ in results] == [(0, "A"), (2, "C")]
        assert results[0][2].non_empty_count() == 1
        assert results[1][2].non_empty_count() == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
