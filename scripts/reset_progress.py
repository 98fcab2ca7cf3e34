"""
Reset learning progress.

DANGEROUS: This deletes stored progress!
Only use when you want to start fresh.

Usage:
    python -m scripts.reset_progress
    python -m scripts.reset_progress --item-type word
"""

import argparse

from chordcore.container import build_services
from chordcore.logging_config import setup_logging
from chordcore.srs.constants import ItemType


def main():
    parser = argparse.ArgumentParser(description="Reset chord-trainer learning progress")
    parser.add_argument(
        "--item-type",
        choices=[t.value for t in ItemType],
        help="Only reset one item type (default: everything)",
    )
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    services = build_services()
    setup_logging(services.settings.logging)

    print("=" * 60)
    print("WARNING: Reset Learning Progress")
    print("=" * 60)
    print()
    if args.item_type:
        print(f"This will DELETE all {args.item_type} progress.")
    else:
        print("This will DELETE:")
        print("  - Progress for every character, power chord and word")
        print("  - Global stats and streaks")
        print("  - Session history")
    print(f"\nDatabase: {services.settings.database.url}")
    print()

    if not args.yes:
        response = input("Are you sure you want to reset? (type 'yes' to confirm): ")
        if response.lower() != "yes":
            print("\nCancelled. No changes made.")
            return

    print("\nResetting...")
    if args.item_type:
        services.progress.reset_progress_for_type(ItemType(args.item_type))
    else:
        services.progress.reset_all_progress()
    print("✓ Reset complete!")


if __name__ == "__main__":
    main()
