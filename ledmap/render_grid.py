"""
Render grid composition for LEd levels.

A level's tile layers (auto-layer rule output and hand-placed grid tiles)
are flattened into a single RenderGrid. Layers are painted bottom to top:
the last declared layer first, the first declared layer last, so earlier
layers win on overlap. Within one layer, auto tiles are painted before
grid tiles.

Int-grid values and entities are never rendered.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple

import numpy as np

from ledmap.coords import Point, to_coord_id
from ledmap.errors import EmptyLevelError, LevelNotFoundError
from ledmap.project import GridTile, Level, Project

logger = logging.getLogger(__name__)

# Pixel size of every tile in the merged grid
TILE_SIZE = 16

# Bits of GridTile.flips
FLIP_X = 1
FLIP_Y = 2


@dataclass(frozen=True)
class RenderCell:
    """
    One composed cell.

    atlas_pos is the atlas column/row of the tile, not a pixel position.
    """
    is_empty: bool = True
    tile_id: int = 0
    atlas_pos: Point = Point(0, 0)
    flips: int = 0

    @property
    def flip_x(self) -> bool:
        return bool(self.flips & FLIP_X)

    @property
    def flip_y(self) -> bool:
        return bool(self.flips & FLIP_Y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_empty": self.is_empty,
            "tile_id": self.tile_id,
            "atlas_pos": list(self.atlas_pos),
            "flips": self.flips,
        }


EMPTY_CELL = RenderCell()


class RenderGrid:
    """
    Dense row-major storage of a level's composed tiles.

    Created empty, filled by to_merged_render_grid, then read-only for
    callers via get_tile() and rows().
    """

    def __init__(self, num_cells: int, tile_size: Point, grid_size: Point):
        self._tiles: List[RenderCell] = [EMPTY_CELL] * num_cells
        self.tile_size = Point(*tile_size)
        self.grid_size = Point(*grid_size)

    @property
    def tiles(self) -> Tuple[RenderCell, ...]:
        """Cells in row-major order."""
        return tuple(self._tiles)

    @property
    def width(self) -> int:
        return self.grid_size.x

    @property
    def height(self) -> int:
        return self.grid_size.y

    def __len__(self) -> int:
        return len(self._tiles)

    def __repr__(self) -> str:
        return (
            f"RenderGrid(grid_size={tuple(self.grid_size)}, "
            f"tile_size={tuple(self.tile_size)}, "
            f"filled={self.non_empty_count()}/{len(self._tiles)})"
        )

    def _place(self, tile: GridTile) -> None:
        if not 0 <= tile.coord_id < len(self._tiles):
            raise IndexError(
                f"coord_id {tile.coord_id} outside grid of {len(self._tiles)} cell(s)"
            )
        self._tiles[tile.coord_id] = RenderCell(
            is_empty=False,
            tile_id=tile.tile_id,
            atlas_pos=Point(tile.tile_x, tile.tile_y),
            flips=tile.flips or 0,
        )

    def get_tile(self, x: int, y: int) -> RenderCell:
        """
        Get the cell at grid position (x, y).

        Raises:
            IndexError: If (x, y) lies outside the grid
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Cell ({x}, {y}) outside grid of size {self.width}x{self.height}"
            )
        return self._tiles[to_coord_id(x, y, self.width)]

    def rows(self) -> Iterator[Tuple[RenderCell, ...]]:
        """
        Iterate rows top to bottom; each row is a tuple of width cells.

        Each call returns a new iterator.
        """
        width = self.width
        if width == 0:
            return iter(())
        cells = self.tiles
        return (cells[i:i + width] for i in range(0, len(cells), width))

    def non_empty_count(self) -> int:
        return sum(1 for cell in self._tiles if not cell.is_empty)

    def tile_id_array(self) -> np.ndarray:
        """
        Tile ids as a (height, width) int array, -1 where the cell is empty.
        """
        ids = np.array(
            [-1 if cell.is_empty else cell.tile_id for cell in self.tiles],
            dtype=np.int64,
        )
        return ids.reshape(self.height, self.width)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "tile_size": list(self.tile_size),
            "grid_size": list(self.grid_size),
            "tiles": [cell.to_dict() for cell in self.tiles],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def to_merged_render_grid(project: Project, level: int) -> RenderGrid:
    """
    Merge all tile layers of a level into a single render grid.

    Grid dimensions come from the level's first layer; all layers of a
    level are expected to share them.

    Args:
        project: Parsed project
        level: Zero-based level index

    Returns:
        Fully composed RenderGrid; untouched cells stay empty

    Raises:
        LevelNotFoundError: If level is outside the project's levels
        EmptyLevelError: If the level has no layer instances

    Example:
        >>> grid = to_merged_render_grid(load_project("world.json"), 0)
        >>> for row in grid.rows():
        ...     print([cell.tile_id for cell in row])
    """
    if not 0 <= level < len(project.levels):
        raise LevelNotFoundError(level, len(project.levels))

    return _compose_level(project.levels[level])


def _compose_level(level: Level) -> RenderGrid:
    if not level.layer_instances:
        raise EmptyLevelError(level.identifier)

    first_layer = level.layer_instances[0]
    grid = RenderGrid(
        first_layer.cell_count,
        Point(TILE_SIZE, TILE_SIZE),
        Point(first_layer.grid_width, first_layer.grid_height),
    )

    logger.debug(
        f"Composing level '{level.identifier}': {len(level.layer_instances)} layer(s), "
        f"{first_layer.grid_width}x{first_layer.grid_height} cells"
    )

    # Paint from the bottom of the layer stack up
    for layer in reversed(level.layer_instances):
        for rule in layer.auto_tiles:
            for tile in rule.tiles:
                grid._place(tile)

        for tile in layer.grid_tiles:
            grid._place(tile)

        logger.debug(f"  layer '{layer.identifier}' ({layer.layer_type}): {layer.tile_count} tile(s)")

    return grid


def level_render_grids(project: Project) -> Iterator[Tuple[int, Level, RenderGrid]]:
    """
    Compose every level that has layers, in project order.

    Yields (level index, level, grid). Levels without layer instances are
    skipped.
    """
    for index, lvl in enumerate(project.levels):
        if not lvl.layer_instances:
            logger.debug(f"Skipping level '{lvl.identifier}': no layers")
            continue
        yield index, lvl, _compose_level(lvl)
