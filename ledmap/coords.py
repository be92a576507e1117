"""
Coordinate helpers for LEd grids and tile atlases.

Coordinate convention:
- Grid cells are addressed as (x, y) with (0, 0) at the top-left
- A coord id is the row-major linear index: x + y * grid_width
- Atlas tiles are laid out left-to-right, top-to-bottom on a regular grid
"""

from typing import NamedTuple


class Point(NamedTuple):
    """Integer (x, y) pair used for grid cells, atlas cells and sizes."""
    x: int
    y: int


def _require_width(width: int, name: str) -> None:
    if width <= 0:
        raise ValueError(f"{name} must be positive, got {width}")


def to_coord_id(x: int, y: int, grid_width: int) -> int:
    """
    Convert a grid (x, y) point to a coord id.

    Args:
        x: Column index
        y: Row index
        grid_width: Width of the grid in cells

    Returns:
        Row-major linear index of the cell

    Raises:
        ValueError: If grid_width is not positive
    """
    _require_width(grid_width, "grid_width")
    return x + y * grid_width


def to_point(coord_id: int, grid_width: int) -> Point:
    """
    Convert a coord id back to a grid (x, y) point.

    Inverse of to_coord_id for every coord_id inside the grid.

    Raises:
        ValueError: If grid_width is not positive
    """
    _require_width(grid_width, "grid_width")
    return Point(coord_id % grid_width, coord_id // grid_width)


def atlas_cell_to_pixel(
    col: int,
    row: int,
    cell_size: int,
    padding: int = 0,
    spacing: int = 0,
) -> Point:
    """
    Top-left pixel of an atlas cell given its column and row.

    Args:
        col: Atlas column
        row: Atlas row
        cell_size: Tile size in pixels
        padding: Pixels between the atlas border and the first tile
        spacing: Pixels between adjacent tiles

    Returns:
        Pixel offset of the tile inside the atlas image
    """
    stride = cell_size + spacing
    return Point(padding + col * stride, padding + row * stride)


def atlas_pixel_position(
    tile_id: int,
    atlas_width_in_cells: int,
    cell_size: int,
    padding: int = 0,
    spacing: int = 0,
) -> Point:
    """
    Map an atlas tile id to its top-left pixel offset in the atlas image.

    Example:
        >>> atlas_pixel_position(5, 4, 16)
        Point(x=16, y=16)

    Raises:
        ValueError: If atlas_width_in_cells is not positive
    """
    _require_width(atlas_width_in_cells, "atlas_width_in_cells")
    col = tile_id % atlas_width_in_cells
    row = tile_id // atlas_width_in_cells
    return atlas_cell_to_pixel(col, row, cell_size, padding, spacing)
