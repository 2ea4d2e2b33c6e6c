"""
Command line entry point.

1) Keep family members and relations in a SQLite database.
2) Add relations with birth-date validation and direction correction.
3) Resolve relations, assign generations from a root member and lay out the tree.
4) Report data-quality warnings and write the positions (JSON), a preview image
   (PNG/SVG/PDF) or pinned DOT source.
"""

import argparse
import json
import logging
from pathlib import Path
import sqlite3
import sys

from database import SQLiteFamilyStore
from errors import ConfigError, RelationshipError
from layout import LayoutConfig
from models import RelationKind
from pipeline import build_family_tree
from plotting import plot_layout, write_dot
from relationships import create_relationship, create_relationship_smart


LAYOUT_FLAGS = (
    "node_width",
    "node_height",
    "spouse_gap",
    "sibling_gap",
    "generation_gap",
    "family_unit_gap",
    "branch_gap",
    "collision_margin",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kinship-layout", description=__doc__.splitlines()[1])
    parser.add_argument("--db", type=Path, default=Path("family_tree.db"), help="SQLite database path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine diagnostics")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-member", help="Add a family member")
    add.add_argument("first_name")
    add.add_argument("last_name")
    add.add_argument("--id", dest="member_id")
    add.add_argument("--birth", dest="birth_date")
    add.add_argument("--death", dest="death_date")
    add.add_argument("--gender")

    relate = sub.add_parser("relate", help="Record that FROM is KIND of TO")
    relate.add_argument("from_id")
    relate.add_argument("to_id")
    relate.add_argument("kind", choices=[k.value for k in RelationKind])
    relate.add_argument(
        "--no-correct",
        action="store_true",
        help="Fail instead of flipping a parent/child direction that contradicts birth dates",
    )

    lay = sub.add_parser("layout", help="Compute generations and positions")
    lay.add_argument("--root", help="Root member id (defaults to the first member)")
    lay.add_argument("--all-branches", action="store_true", help="Also place branches not connected to the root")
    lay.add_argument("--config", type=Path, help="JSON file with layout settings")
    lay.add_argument("--orientation", choices=["top-down", "bottom-up"])
    for flag in LAYOUT_FLAGS:
        lay.add_argument(f"--{flag.replace('_', '-')}", dest=flag, type=float)
    lay.add_argument("--json", dest="json_path", type=Path, help="Write positions and generations as JSON")
    lay.add_argument("--plot", dest="plot_path", type=Path, help="Write a preview image (png/svg/pdf)")
    lay.add_argument("--dot", dest="dot_path", type=Path, help="Write DOT source with pinned positions")
    return parser


def load_layout_config(args: argparse.Namespace) -> LayoutConfig:
    """Defaults, then the JSON config file, then command line flags."""
    overrides = {}
    if args.config:
        base = LayoutConfig.from_json_file(args.config)
        overrides.update({name: getattr(base, name) for name in base.__dataclass_fields__})
    for flag in LAYOUT_FLAGS:
        value = getattr(args, flag)
        if value is not None:
            overrides[flag] = value
    if args.orientation:
        overrides["orientation"] = args.orientation
    return LayoutConfig.from_dict(overrides)


def cmd_add_member(store: SQLiteFamilyStore, args: argparse.Namespace) -> int:
    member = store.add_member(
        args.first_name,
        args.last_name,
        birth_date=args.birth_date,
        death_date=args.death_date,
        gender=args.gender,
        member_id=args.member_id,
    )
    print(f"Added {member.name} ({member.id})")
    return 0


def cmd_relate(store: SQLiteFamilyStore, args: argparse.Namespace) -> int:
    if args.no_correct:
        try:
            relation_id, report = create_relationship(store, args.from_id, args.to_id, args.kind)
        except RelationshipError as e:
            print(f"Rejected ({e.code}): {e}")
            return 1
        print(f"Created relation {relation_id}: {args.from_id} is {args.kind} of {args.to_id}")
        warnings = report.warnings
    else:
        result = create_relationship_smart(store, args.from_id, args.to_id, args.kind)
        if not result.success:
            print(f"Rejected ({result.error.code}): {result.error}")
            if result.suggestion:
                print(f"  Suggested solution: {result.suggestion}")
            return 1
        note = " (direction corrected from birth dates)" if result.corrected else ""
        print(
            f"Created relation {result.relation_id}: {args.from_id} is "
            f"{result.actual_kind.value} of {args.to_id}{note}"
        )
        warnings = result.warnings

    for w in warnings:
        print(f"  - {w}")
    return 0


def cmd_layout(store: SQLiteFamilyStore, args: argparse.Namespace) -> int:
    config = load_layout_config(args)

    print("Loading members and relations...")
    members = store.list_members()
    relations = store.list_relations()
    print(f"  Found {len(members)} members and {len(relations)} relations")

    print("Resolving relations and computing layout...")
    tree = build_family_tree(
        members, relations, root_id=args.root, config=config, include_all_branches=args.all_branches
    )
    if tree.root_id is None:
        print("  No members to lay out")
        return 0
    print(f"  Root: {tree.root_id}, placed {len(tree.positions)} of {len(members)} members")
    if tree.unplaced:
        print(f"  Not connected to the root: {len(tree.unplaced)}")

    if tree.warnings:
        print(f"  Found {len(tree.warnings)} validation warnings:")
        for w in tree.warnings[:10]:  # Show first 10 warnings
            print(f"    - {w}")
        if len(tree.warnings) > 10:
            print(f"    ... and {len(tree.warnings) - 10} more")
    else:
        print("  No validation issues found")

    if args.json_path:
        payload = {
            "root": tree.root_id,
            "generations": tree.generations,
            "positions": {m: {"x": p.x, "y": p.y} for m, p in tree.positions.items()},
            "warnings": tree.warnings,
        }
        args.json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Positions saved to {args.json_path}")
    if args.plot_path:
        plot_layout(members, tree.resolved, tree.positions, args.plot_path, config)
        print(f"Graph saved to {args.plot_path}")
    if args.dot_path:
        write_dot(members, tree.resolved, tree.positions, args.dot_path, config)
        print(f"DOT source saved to {args.dot_path}")
    if not (args.json_path or args.plot_path or args.dot_path):
        for member_id, pos in tree.positions.items():
            print(f"{member_id}\tgen={tree.generations[member_id]}\tx={pos.x:.1f}\ty={pos.y:.1f}")
    return 0


COMMANDS = {
    "add-member": cmd_add_member,
    "relate": cmd_relate,
    "layout": cmd_layout,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with SQLiteFamilyStore(args.db) as store:
            return COMMANDS[args.command](store, args)
    except ConfigError as e:
        print(f"Invalid layout configuration: {e}", file=sys.stderr)
        return 2
    except sqlite3.IntegrityError as e:
        print(f"Rejected by the database: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
