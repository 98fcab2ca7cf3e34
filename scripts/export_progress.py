"""
Export or import learning progress as JSON.

Writes the version-3 export format; reads versions 1-3.

Usage:
    python -m scripts.export_progress export progress.json
    python -m scripts.export_progress import progress.json
"""

import argparse
import sys
from pathlib import Path

from chordcore.container import build_services
from chordcore.logging_config import setup_logging
from chordcore.srs.constants import ItemType


def print_summary(services) -> None:
    stats = services.repository.get_total_stats()
    print(f"  Characters practised:   {stats.characters_learned} ({stats.characters_mastered} mastered)")
    print(f"  Power chords practised: {stats.power_chords_learned} ({stats.power_chords_mastered} mastered)")
    print(f"  Words practised:        {stats.words_learned} ({stats.words_mastered} mastered)")
    print(f"  Sessions completed:     {stats.sessions_completed}")


def export_to(services, path: Path) -> int:
    payload = services.progress.export_progress()
    path.write_text(payload, encoding="utf-8")
    total = sum(len(services.repository.get_all(t)) for t in ItemType)
    print(f"✓ Exported {total} items to {path}")
    print_summary(services)
    return 0


def import_from(services, path: Path) -> int:
    if not path.exists():
        print(f"⚠ File not found: {path}")
        return 1

    if not services.progress.import_progress(path.read_text(encoding="utf-8")):
        print("✗ Import failed: file is unreadable or has an unsupported version")
        return 1

    print(f"✓ Imported progress from {path}")
    print_summary(services)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Export or import chord-trainer progress")
    parser.add_argument("action", choices=["export", "import"])
    parser.add_argument("path", type=Path)
    args = parser.parse_args()

    services = build_services()
    setup_logging(services.settings.logging)

    print("=" * 60)
    print(f"Progress {args.action}")
    print(f"Database: {services.settings.database.url}")
    print("=" * 60)

    if args.action == "export":
        return export_to(services, args.path)
    return import_from(services, args.path)


if __name__ == "__main__":
    sys.exit(main())
