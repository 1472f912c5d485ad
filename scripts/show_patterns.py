#!/usr/bin/env python3
"""Print the most frequent learned patterns from the pattern store.

Usage examples:
    # Top 20 patterns
    python scripts/show_patterns.py

    # Only success patterns, top 5
    python scripts/show_patterns.py --type success --limit 5

    # A different database
    python scripts/show_patterns.py --db /tmp/cognition.db
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running from project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from cognition.config import settings
from cognition.learning import LearningEngine, PatternStore, PatternType


def format_pattern(pattern) -> str:
    source = pattern.top_source or "-"
    return (
        f"{pattern.occurrences:>5}  {pattern.confidence:.2f}  {source:<18} "
        f"{pattern.type.value}:{pattern.key}"
    )


async def show(db_path: Path, pattern_type: PatternType | None, limit: int) -> int:
    engine = LearningEngine(store=PatternStore(db_path))
    loaded = await engine.load()
    if not loaded:
        print(f"No patterns stored in {db_path}")
        return 0

    patterns = engine.get_top_patterns(limit=loaded)
    if pattern_type is not None:
        patterns = [p for p in patterns if p.type == pattern_type]
    patterns = patterns[:limit]

    print(f"{'count':>5}  conf  {'top source':<18} pattern")
    for pattern in patterns:
        print(format_pattern(pattern))
    print(f"\n{len(patterns)} of {loaded} pattern(s) shown")
    return len(patterns)


def main() -> None:
    parser = argparse.ArgumentParser(description="Show learned interaction patterns")
    parser.add_argument("--db", type=Path, default=settings.database_path, help="SQLite database")
    parser.add_argument(
        "--type",
        choices=[t.value for t in PatternType],
        help="Only show patterns of this type",
    )
    parser.add_argument("--limit", type=int, default=20, help="Max patterns to print")
    args = parser.parse_args()

    pattern_type = PatternType(args.type) if args.type else None
    asyncio.run(show(args.db, pattern_type, args.limit))


if __name__ == "__main__":
    main()
