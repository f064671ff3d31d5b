from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from uuid import UUID

from .categories import BASE_CATEGORIES, display_name, selection_summary
from .config import AppConfig, ConfigError, load_config
from .export import EXPORT_FORMATS, write_export
from .geo import GeoPoint
from .importer import CheckInImportError, ImportRunner
from .migration import STATUS_FAILED, STATUS_MIGRATED, MigrationRunner
from .records import UNKNOWN_LOCATION_NAME, CapturePreview, CheckInRecord
from .settings import SearchSettings, SettingsStore
from .store import RecordStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="poi-log", description="Record and manage location check-ins")
    parser.add_argument("--config", help="Optional YAML config file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate")

    checkin_parser = subparsers.add_parser("checkin")
    checkin_parser.add_argument("--lat", type=float, required=True)
    checkin_parser.add_argument("--lon", type=float, required=True)
    checkin_parser.add_argument("--name")
    checkin_parser.add_argument("--address", default="")
    checkin_parser.add_argument("--category")

    list_parser = subparsers.add_parser("list")
    list_parser.add_argument("--limit", type=int)

    remove_parser = subparsers.add_parser("remove")
    remove_parser.add_argument("ids", nargs="+")

    edit_parser = subparsers.add_parser("edit-date")
    edit_parser.add_argument("id")
    edit_parser.add_argument("--at", required=True, help="New ISO-8601 timestamp")

    export_parser = subparsers.add_parser("export")
    export_parser.add_argument("--format", choices=EXPORT_FORMATS, default="json")
    export_parser.add_argument("--out-dir")

    import_parser = subparsers.add_parser("import")
    import_parser.add_argument("path")

    capture_parser = subparsers.add_parser("capture")
    capture_parser.add_argument("--lat", type=float, required=True)
    capture_parser.add_argument("--lon", type=float, required=True)
    capture_parser.add_argument("--name", default=UNKNOWN_LOCATION_NAME)
    capture_parser.add_argument("--address", default="")

    categories_parser = subparsers.add_parser("categories")
    categories_parser.add_argument("--set", dest="selection", help="Comma-separated categories to search")
    categories_parser.add_argument("--all", action="store_true", help="List every available category")

    debug_parser = subparsers.add_parser("debug")
    debug_parser.add_argument("state", choices=("on", "off"))

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    settings = SettingsStore(config.settings_path)
    store = RecordStore(config.store_path)

    result = MigrationRunner(store, settings, config.legacy_path).run()
    if result.status == STATUS_MIGRATED:
        print(f"Migrated {result.migrated} legacy check-ins ({result.skipped} already present)")
    elif result.status == STATUS_FAILED and args.command == "migrate":
        print(f"Error: could not migrate {config.legacy_path}; will retry next launch", file=sys.stderr)
        return 1

    if args.command == "migrate":
        if result.status != STATUS_MIGRATED:
            print(f"Migration: {result.status}")
        return 0

    handler = _COMMANDS[args.command]
    return handler(args, config, store, settings)


def _checkin(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    point = GeoPoint(args.lat, args.lon)
    if args.name:
        record = CheckInRecord(
            name=args.name,
            address=args.address,
            latitude=point.latitude,
            longitude=point.longitude,
            category=args.category,
        )
    else:
        record = CheckInRecord.from_coordinates(point)
    saved = store.add(record)
    print(f"Checked in at {record.name} ({point}) id={record.id}")
    if not saved:
        _warn_unsaved(config.store_path)
    return 0


def _list(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    records = store.records
    if args.limit is not None:
        records = records[: args.limit]
    if not records:
        print("No check-ins yet")
        return 0
    for record in records:
        when = record.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
        category = f" [{record.category}]" if record.category else ""
        print(f"{when}  {record.name}{category}  {record.latitude:.6f}, {record.longitude:.6f}  {record.id}")
    return 0


def _remove(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    ids = _parse_ids(args.ids)
    if ids is None:
        return 1
    before = len(store)
    saved = store.remove(ids)
    print(f"Removed {before - len(store)} check-ins")
    if not saved:
        _warn_unsaved(config.store_path)
    return 0


def _edit_date(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    ids = _parse_ids([args.id])
    if ids is None:
        return 1
    record = store.get(ids[0])
    if record is None:
        print(f"Error: no check-in with id {args.id}", file=sys.stderr)
        return 1
    try:
        created_at = datetime.fromisoformat(args.at.replace("Z", "+00:00"))
    except ValueError:
        print(f"Error: invalid --at '{args.at}'. Expected ISO-8601.", file=sys.stderr)
        return 1
    if created_at.tzinfo is None:
        created_at = created_at.astimezone()
    updated = record.with_created_at(created_at)
    saved = store.update(updated)
    print(f"Updated {record.name} to {updated.created_at.isoformat()}")
    if not saved:
        _warn_unsaved(config.store_path)
    return 0


def _export(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    out_dir = config.export_dir if not args.out_dir else Path(args.out_dir).expanduser()
    try:
        path = write_export(store.records, args.format, out_dir)
    except OSError as exc:
        print(f"Error: could not write export: {exc}", file=sys.stderr)
        return 1
    print(f"Exported {len(store)} check-ins to {path}")
    return 0


def _import(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    try:
        result = ImportRunner(store).import_file(args.path)
    except CheckInImportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Imported {result.imported}, skipped {result.skipped}")
    if not result.persisted:
        _warn_unsaved(config.store_path)
    return 0


def _capture(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    preview = CapturePreview.for_location(GeoPoint(args.lat, args.lon), name=args.name, address=args.address)
    print(preview.yaml_string)
    return 0


def _categories(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    # Without a provider to negotiate with, offer the base catalog.
    search_settings = SearchSettings.load(settings, BASE_CATEGORIES)
    if args.selection is not None:
        chosen = {item.strip() for item in args.selection.split(",") if item.strip()}
        try:
            saved = search_settings.set_selected_categories(chosen)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        if not saved:
            _warn_unsaved(config.settings_path)
    if args.all:
        for category in sorted(search_settings.available):
            marker = "*" if category in search_settings.selected_categories else " "
            print(f"{marker} {category:<20} {display_name(category)}")
    print(f"Selected: {selection_summary(search_settings.selected_categories, search_settings.available)}")
    return 0


def _debug(args: argparse.Namespace, config: AppConfig, store: RecordStore, settings: SettingsStore) -> int:
    search_settings = SearchSettings.load(settings, BASE_CATEGORIES)
    saved = search_settings.set_debug_mode(args.state == "on")
    print(f"Debug mode {args.state}")
    if not saved:
        _warn_unsaved(config.settings_path)
    return 0


def _warn_unsaved(path: Path) -> None:
    print(f"Warning: could not write {path}", file=sys.stderr)


def _parse_ids(values: list[str]) -> list[UUID] | None:
    ids: list[UUID] = []
    for value in values:
        try:
            ids.append(UUID(value))
        except ValueError:
            print(f"Error: '{value}' is not a check-in id", file=sys.stderr)
            return None
    return ids


_COMMANDS = {
    "checkin": _checkin,
    "list": _list,
    "remove": _remove,
    "edit-date": _edit_date,
    "export": _export,
    "import": _import,
    "capture": _capture,
    "categories": _categories,
    "debug": _debug,
}


if __name__ == "__main__":
    sys.exit(main())
