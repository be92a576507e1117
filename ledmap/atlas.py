"""
Render a composed level to an image using a tileset atlas.

The atlas is a regular grid of tiles, optionally with an outer padding
and spacing between tiles. Each non-empty RenderCell is copied from its
atlas column/row into the output image, flipped according to its flips.
"""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from ledmap.coords import atlas_cell_to_pixel
from ledmap.errors import AtlasError
from ledmap.render_grid import RenderGrid

logger = logging.getLogger(__name__)


def load_atlas(path: Union[str, Path]) -> np.ndarray:
    """
    Load an atlas image, keeping any alpha channel.

    Raises:
        AtlasError: If the image cannot be read
    """
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise AtlasError(f"Could not read atlas image: {path}")
    return image


def render_grid_image(
    grid: RenderGrid,
    atlas: np.ndarray,
    padding: int = 0,
    spacing: int = 0,
) -> np.ndarray:
    """
    Blit every non-empty cell of a render grid from the atlas.

    Args:
        grid: Composed render grid
        atlas: Atlas image array (H x W or H x W x C)
        padding: Pixels between the atlas border and the first tile
        spacing: Pixels between adjacent atlas tiles

    Returns:
        Image of shape (height * tile_h, width * tile_w[, C]) with the same
        dtype as the atlas; empty cells are left zeroed (transparent when
        the atlas has alpha)

    Raises:
        AtlasError: If a cell references a tile outside the atlas
    """
    tile_w, tile_h = grid.tile_size
    out_shape = (grid.height * tile_h, grid.width * tile_w) + atlas.shape[2:]
    image = np.zeros(out_shape, dtype=atlas.dtype)

    for y, row in enumerate(grid.rows()):
        for x, cell in enumerate(row):
            if cell.is_empty:
                continue

            # Square tiles: the atlas stride uses the tile width
            src_x, src_y = atlas_cell_to_pixel(
                cell.atlas_pos.x, cell.atlas_pos.y, tile_w, padding, spacing
            )
            src = atlas[src_y:src_y + tile_h, src_x:src_x + tile_w]
            if src.shape[:2] != (tile_h, tile_w):
                raise AtlasError(
                    f"Tile {cell.tile_id} at atlas cell {tuple(cell.atlas_pos)} "
                    f"is outside the atlas ({atlas.shape[1]}x{atlas.shape[0]} px)"
                )

            if cell.flip_x:
                src = src[:, ::-1]
            if cell.flip_y:
                src = src[::-1, :]

            image[y * tile_h:(y + 1) * tile_h, x * tile_w:(x + 1) * tile_w] = src

    logger.debug(f"Rendered {grid.non_empty_count()} tile(s) into {out_shape[1]}x{out_shape[0]} px image")
    return image


def save_image(path: Union[str, Path], image: np.ndarray) -> Path:
    """
    Write an image to disk, creating parent directories.

    Raises:
        AtlasError: If OpenCV fails to encode the image
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), image):
        raise AtlasError(f"Could not write image: {path}")
    return path


def render_level_to_file(
    grid: RenderGrid,
    atlas_path: Union[str, Path],
    output_path: Union[str, Path],
    padding: int = 0,
    spacing: int = 0,
) -> Path:
    """Load an atlas, render the grid with it and save the result."""
    atlas = load_atlas(atlas_path)
    image = render_grid_image(grid, atlas, padding=padding, spacing=spacing)
    return save_image(output_path, image)
