#!/usr/bin/env python3
"""
ledmap CLI - Inspect LEd projects and their merged render grids.

Usage:
    ledmap info project.json
    ledmap grid project.json --level 0
    ledmap grid project.json --level 0 --json
    ledmap render project.json --atlas tiles.png --output level0.png
"""

import argparse
import logging
import sys


def cmd_info(args):
    """Show a summary of a LEd project."""
    from ledmap.project import load_project
    from ledmap.render_grid import level_render_grids

    try:
        project = load_project(args.project)

        print(f"Project: {project.name}")
        print(f"JSON version: {project.json_version}")
        print(f"Background: {project.bg_color}")

        filled = {
            index: grid.non_empty_count()
            for index, _, grid in level_render_grids(project)
        }

        print(f"\nLevels: {project.level_count}")
        for index, level in enumerate(project.levels):
            print(f"  [{index}] {level.identifier} ({level.px_wid}x{level.px_hei} px)")
            for layer in level.layer_instances:
                print(
                    f"      - {layer.identifier} [{layer.layer_type}] "
                    f"{layer.grid_width}x{layer.grid_height} cells, "
                    f"{layer.tile_count} tile(s), {len(layer.entity_instances)} entity(ies)"
                )
            if index in filled:
                print(f"      filled cells: {filled[index]}")

        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_grid(args):
    """Print the merged render grid of one level."""
    from ledmap.project import load_project
    from ledmap.render_grid import to_merged_render_grid

    try:
        project = load_project(args.project)
        grid = to_merged_render_grid(project, args.level)

        if args.json:
            print(grid.to_json())
            return 0

        for row_num, row in enumerate(grid.rows()):
            for col_num, cell in enumerate(row):
                if cell.is_empty:
                    print(f"{row_num}, {col_num}: EMPTY")
                    continue
                print(
                    f"{row_num}, {col_num}: {cell.tile_id} "
                    f"@ {cell.atlas_pos.x},{cell.atlas_pos.y}"
                )

        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_render(args):
    """Render one level to an image using a tileset atlas."""
    from ledmap.project import load_project
    from ledmap.render_grid import to_merged_render_grid
    from ledmap.atlas import render_level_to_file

    try:
        project = load_project(args.project)
        grid = to_merged_render_grid(project, args.level)
        result = render_level_to_file(
            grid,
            args.atlas,
            args.output,
            padding=args.padding,
            spacing=args.spacing,
        )
        print(f"Success: {result}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="ledmap CLI - Inspect LEd projects and render merged level grids",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ledmap info world.json
  ledmap grid world.json --level 0
  ledmap render world.json --atlas tiles.png --output level0.png
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # info
    info_parser = subparsers.add_parser(
        "info",
        help="Show a summary of a LEd project",
    )
    info_parser.add_argument("project", help="Path to LEd project .json file")
    info_parser.set_defaults(func=cmd_info)

    # grid
    grid_parser = subparsers.add_parser(
        "grid",
        help="Print the merged render grid of a level",
    )
    grid_parser.add_argument("project", help="Path to LEd project .json file")
    grid_parser.add_argument("--level", "-l", type=int, default=0, help="Level index (default: 0)")
    grid_parser.add_argument("--json", action="store_true", help="Print the grid as JSON")
    grid_parser.set_defaults(func=cmd_grid)

    # render
    render_parser = subparsers.add_parser(
        "render",
        help="Render a level to an image using a tileset atlas",
    )
    render_parser.add_argument("project", help="Path to LEd project .json file")
    render_parser.add_argument("--atlas", "-a", required=True, help="Tileset atlas image (PNG)")
    render_parser.add_argument("--output", "-o", required=True, help="Output image file")
    render_parser.add_argument("--level", "-l", type=int, default=0, help="Level index (default: 0)")
    render_parser.add_argument("--padding", type=int, default=0, help="Atlas outer padding in pixels (default: 0)")
    render_parser.add_argument("--spacing", type=int, default=0, help="Atlas spacing between tiles in pixels (default: 0)")
    render_parser.set_defaults(func=cmd_render)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
