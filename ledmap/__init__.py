"""
ledmap - Parse LEd level editor projects and flatten levels into render grids.

A LEd project JSON export is loaded into a frozen, typed model:
- Project -> Level -> LayerInstance
- LayerInstance -> auto tile rules, grid tiles, int grid, entities

to_merged_render_grid() then merges a level's tile layers into a single
row-major RenderGrid, with earlier-declared layers drawn on top.
"""

__version__ = "0.1.0"

from ledmap.coords import Point, to_coord_id, to_point, atlas_pixel_position
from ledmap.errors import (
    LedmapError, ProjectFormatError, LevelNotFoundError, EmptyLevelError, AtlasError,
)
from ledmap.project import Project, Level, LayerInstance, GridTile, load_project
from ledmap.render_grid import RenderCell, RenderGrid, to_merged_render_grid

__all__ = [
    "Point",
    "to_coord_id",
    "to_point",
    "atlas_pixel_position",
    "LedmapError",
    "ProjectFormatError",
    "LevelNotFoundError",
    "EmptyLevelError",
    "AtlasError",
    "Project",
    "Level",
    "LayerInstance",
    "GridTile",
    "load_project",
    "RenderCell",
    "RenderGrid",
    "to_merged_render_grid",
]
