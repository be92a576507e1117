"""
Typed model of a LEd project JSON export.

See https://deepnight.net/docs/led/json/ for the format. The model targets
editor version 0.2.x, JSON version 1. Definitions ("defs") are not parsed;
everything needed for rendering lives on the level layer instances.

All classes are frozen: a Project is built once by from_dict/from_json and
only read afterwards.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, Union

from ledmap.errors import ProjectFormatError

logger = logging.getLogger(__name__)

SUPPORTED_JSON_VERSION = "1"

# Layer kinds as written in "__type"
LAYER_INT_GRID = "IntGrid"
LAYER_ENTITIES = "Entities"
LAYER_TILES = "Tiles"
LAYER_AUTO = "AutoLayer"


@dataclass(frozen=True)
class IntGridCoordinate:
    """One int-grid value at a cell."""
    coord_id: int
    v: int

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IntGridCoordinate":
        return cls(coord_id=d["coordId"], v=d["v"])


@dataclass(frozen=True)
class GridTile:
    """
    A tile placed at one cell of a layer.

    tile_x / tile_y are the source column and row in the atlas, not pixels.
    """
    coord_id: int
    tile_id: int
    tile_x: int
    tile_y: int
    flips: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GridTile":
        return cls(
            coord_id=d["coordId"],
            tile_id=d["tileId"],
            tile_x=d["__tileX"],
            tile_y=d["__tileY"],
            flips=d.get("flips"),
        )


@dataclass(frozen=True)
class AutoTileRule:
    """Pre-computed tile placements produced by one auto-layer rule."""
    rule_id: int
    tiles: Tuple[GridTile, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AutoTileRule":
        return cls(
            rule_id=d["ruleId"],
            tiles=tuple(GridTile.from_dict(t) for t in d["tiles"]),
        )


@dataclass(frozen=True)
class FieldInstance:
    """
    Base class for entity field values.

    Concrete variants are registered in FIELD_TYPES under their "__type" tag.
    """
    identifier: str
    value: Any
    def_uid: int

    type_tag = ""
    is_array = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FieldInstance":
        value = d["__value"]
        if cls.is_array:
            value = tuple(value) if value is not None else ()
        return cls(identifier=d["__identifier"], value=value, def_uid=d["defUid"])


@dataclass(frozen=True)
class IntField(FieldInstance):
    type_tag = "Int"


@dataclass(frozen=True)
class FloatField(FieldInstance):
    type_tag = "Float"


@dataclass(frozen=True)
class BoolField(FieldInstance):
    type_tag = "Bool"


@dataclass(frozen=True)
class StringField(FieldInstance):
    type_tag = "String"


@dataclass(frozen=True)
class ColorField(FieldInstance):
    """Color as hex string, e.g. "#FF00AA"."""
    type_tag = "Color"


@dataclass(frozen=True)
class IntArrayField(FieldInstance):
    type_tag = "Array<Int>"
    is_array = True


@dataclass(frozen=True)
class FloatArrayField(FieldInstance):
    type_tag = "Array<Float>"
    is_array = True


@dataclass(frozen=True)
class BoolArrayField(FieldInstance):
    type_tag = "Array<Bool>"
    is_array = True


@dataclass(frozen=True)
class StringArrayField(FieldInstance):
    type_tag = "Array<String>"
    is_array = True


@dataclass(frozen=True)
class ColorArrayField(FieldInstance):
    type_tag = "Array<Color>"
    is_array = True


FIELD_TYPES: Dict[str, Type[FieldInstance]] = {
    cls.type_tag: cls
    for cls in (
        IntField, FloatField, BoolField, StringField, ColorField,
        IntArrayField, FloatArrayField, BoolArrayField,
        StringArrayField, ColorArrayField,
    )
}


def field_instance_from_dict(d: Dict[str, Any]) -> FieldInstance:
    """
    Build the FieldInstance variant matching the "__type" tag of d.

    Raises:
        ProjectFormatError: If the tag is missing or unknown
    """
    tag = d.get("__type")
    field_cls = FIELD_TYPES.get(tag)
    if field_cls is None:
        raise ProjectFormatError(f"Unknown field instance type: {tag!r}")
    return field_cls.from_dict(d)


@dataclass(frozen=True)
class EntityInstance:
    """An entity placed in an Entities layer. Not used for rendering."""
    identifier: str
    cx: int
    cy: int
    def_uid: int
    x: int
    y: int
    field_instances: Tuple[FieldInstance, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EntityInstance":
        return cls(
            identifier=d["__identifier"],
            cx=d["__cx"],
            cy=d["__cy"],
            def_uid=d["defUid"],
            x=d["x"],
            y=d["y"],
            field_instances=tuple(
                field_instance_from_dict(f) for f in d["fieldInstances"]
            ),
        )

    def field(self, identifier: str) -> Optional[FieldInstance]:
        """Look up a field instance by identifier."""
        return next(
            (f for f in self.field_instances if f.identifier == identifier), None
        )


@dataclass(frozen=True)
class LayerInstance:
    """
    One layer of a level.

    All layers of a level share the same grid_width x grid_height; LEd
    guarantees this when exporting.
    """
    identifier: str
    layer_type: str
    grid_width: int
    grid_height: int
    level_id: int
    layer_def_uid: int
    px_offset_x: int
    px_offset_y: int
    seed: int
    int_grid: Tuple[IntGridCoordinate, ...] = ()
    auto_tiles: Tuple[AutoTileRule, ...] = ()
    grid_tiles: Tuple[GridTile, ...] = ()
    entity_instances: Tuple[EntityInstance, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LayerInstance":
        return cls(
            identifier=d["__identifier"],
            layer_type=d["__type"],
            grid_width=d["__cWid"],
            grid_height=d["__cHei"],
            level_id=d["levelId"],
            layer_def_uid=d["layerDefUid"],
            px_offset_x=d["pxOffsetX"],
            px_offset_y=d["pxOffsetY"],
            seed=d["seed"],
            int_grid=tuple(IntGridCoordinate.from_dict(c) for c in d["intGrid"]),
            auto_tiles=tuple(AutoTileRule.from_dict(r) for r in d["autoTiles"]),
            grid_tiles=tuple(GridTile.from_dict(t) for t in d["gridTiles"]),
            entity_instances=tuple(
                EntityInstance.from_dict(e) for e in d["entityInstances"]
            ),
        )

    @property
    def cell_count(self) -> int:
        return self.grid_width * self.grid_height

    @property
    def tile_count(self) -> int:
        """Number of tiles this layer contributes to rendering."""
        return len(self.grid_tiles) + sum(len(r.tiles) for r in self.auto_tiles)


@dataclass(frozen=True)
class Level:
    """
    A level and its layers.

    layer_instances[0] is the topmost layer, the last one is the bottommost.
    """
    identifier: str
    px_wid: int
    px_hei: int
    layer_instances: Tuple[LayerInstance, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Level":
        return cls(
            identifier=d["identifier"],
            px_wid=d["pxWid"],
            px_hei=d["pxHei"],
            layer_instances=tuple(
                LayerInstance.from_dict(layer) for layer in d["layerInstances"]
            ),
        )


@dataclass(frozen=True)
class Project:
    """
    Root of a LEd project document.

    Required fields:
    - name: Project name
    - bg_color: Background color as hex (e.g. "#FFFFFF")
    - json_version: Version of the JSON format
    - default_pivot_x / default_pivot_y: Default entity pivot
    - levels: Ordered list of levels
    """
    name: str
    bg_color: str
    json_version: str
    default_pivot_x: float
    default_pivot_y: float
    levels: Tuple[Level, ...] = ()
    project_file_path: Optional[str] = None
    project_dir: Optional[str] = None

    @property
    def level_count(self) -> int:
        return len(self.levels)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Project":
        """Create Project from a decoded JSON dictionary."""
        return cls(
            name=d["name"],
            bg_color=d["bgColor"],
            json_version=str(d["jsonVersion"]),
            default_pivot_x=float(d["defaultPivotX"]),
            default_pivot_y=float(d["defaultPivotY"]),
            levels=tuple(Level.from_dict(lvl) for lvl in d["levels"]),
            project_file_path=d.get("projectFilePath"),
            project_dir=d.get("projectDir"),
        )

    @classmethod
    def from_json(cls, json_str: Union[str, bytes]) -> "Project":
        """
        Create Project from a JSON string.

        Raises:
            ProjectFormatError: If the JSON is malformed or a required
                field is missing or of the wrong shape
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ProjectFormatError(f"Invalid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise ProjectFormatError(f"Project file is not valid UTF-8: {e}") from e

        if not isinstance(data, dict):
            raise ProjectFormatError("Project JSON must be an object")

        try:
            project = cls.from_dict(data)
        except ProjectFormatError:
            raise
        except KeyError as e:
            raise ProjectFormatError(f"Missing required field: {e.args[0]}") from e
        except (AttributeError, TypeError, ValueError) as e:
            raise ProjectFormatError(f"Malformed project document: {e}") from e

        if project.json_version != SUPPORTED_JSON_VERSION:
            logger.warning(
                f"Project '{project.name}' has JSON version {project.json_version}, "
                f"expected {SUPPORTED_JSON_VERSION}"
            )
        logger.debug(f"Parsed project '{project.name}' with {project.level_count} level(s)")
        return project


def load_project(path: Union[str, Path]) -> Project:
    """
    Read and parse a LEd project file.

    Args:
        path: Path to the project .json file

    Returns:
        Parsed Project

    Raises:
        FileNotFoundError: If the file does not exist
        ProjectFormatError: If the file is not a valid project document
    """
    path = Path(path)
    logger.info(f"Loading project: {path}")
    return Project.from_json(path.read_bytes())
