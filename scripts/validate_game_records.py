#!/usr/bin/env python3
"""
Validate a JSON-lines game record file.
Checks that every line decodes to a GameRecord and, optionally, that
seeded records replay to their recorded outcome.
"""

import os
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from superlife.errors import RecordFormatError
from superlife.records.record import GameRecord
from superlife.records.replay import replay
from superlife.records.store import DEFAULT_STORE_PATH

def validate_game_records(record_file=str(DEFAULT_STORE_PATH), check_replay=False):
    """Validate record format and, if asked, replay fidelity."""
    record_path = Path(record_file)
    if not record_path.exists():
        print(f"⚠ Record file {record_file} does not exist yet")
        return 0

    with open(record_path, 'r', encoding='utf-8') as f:
        lines = f.readlines()

    valid_lines = 0
    errors = 0
    diverged = 0
    seen_ids = set()
    for i, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:  # Skip empty lines
            continue
        try:
            record = GameRecord.from_json(line)
        except RecordFormatError as e:
            print(f"✗ Line {i}: {e}")
            errors += 1
            continue

        if record.game_id in seen_ids:
            print(f"✗ Line {i}: duplicate game id {record.game_id}")
            errors += 1
            continue
        seen_ids.add(record.game_id)
        valid_lines += 1

        if check_replay and record.seed is not None:
            try:
                matches = replay(record).matches_record
            except RecordFormatError as e:
                print(f"✗ Line {i}: {e}")
                errors += 1
                continue
            if not matches:
                print(f"✗ Line {i}: replay of {record.game_id} diverged")
                diverged += 1

    print(f"✓ Validated {valid_lines} game record(s)")
    if check_replay:
        print(f"{'✓' if diverged == 0 else '✗'} Replay: {diverged} diverged")
    return 1 if errors or diverged else 0

if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument("record_file", nargs='?', default=str(DEFAULT_STORE_PATH))
    parser.add_argument("--replay", action="store_true", help="Re-run seeded games")

    args = parser.parse_args()
    exit_code = validate_game_records(args.record_file, args.replay)
    sys.exit(exit_code)
