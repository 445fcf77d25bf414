from __future__ import annotations

import argparse
import json
import re
from collections import Counter
from pathlib import Path
from typing import Any


ENTRY_RE = re.compile(r"audit (?P<payload>\{.*\})\s*$")


def _format_rate(n: int, d: int) -> str:
    if d <= 0:
        return "n/a"
    return f"{(100.0 * n / d):.1f}% ({n}/{d})"


def parse_log(path: Path) -> dict[str, Any]:
    by_type: Counter[str] = Counter()
    ignored_codes: Counter[str] = Counter()
    sessions: set[str] = set()
    connections: set[str] = set()

    for line in path.read_text(encoding="utf-8", errors="ignore").splitlines():
        match = ENTRY_RE.search(line.strip())
        if not match:
            continue
        try:
            record = json.loads(match.group("payload"))
        except json.JSONDecodeError:
            continue
        if not isinstance(record, dict):
            continue

        event_type = str(record.get("type", "")).strip()
        if not event_type:
            continue
        by_type[event_type] += 1
        if event_type == "INPUT_IGNORED":
            ignored_codes[str(record.get("code", ""))] += 1
        if record.get("session_id"):
            sessions.add(str(record["session_id"]))
        if record.get("connection_id"):
            connections.add(str(record["connection_id"]))

    return {
        "by_type": dict(by_type),
        "ignored_codes": dict(ignored_codes),
        "total": sum(by_type.values()),
        "distinct_sessions": len(sessions),
        "distinct_connections": len(connections),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Summarize intake sync audit records from a server log")
    parser.add_argument("--log-path", required=True, help="Path to a server log captured at DEBUG or INFO level")
    args = parser.parse_args()

    path = Path(args.log_path).expanduser()
    if not path.exists():
        raise SystemExit(f"log file not found: {path}")

    stats = parse_log(path)
    by_type = stats["by_type"]
    submits = by_type.get("SUBMISSION_ACCEPTED", 0)
    drafts = by_type.get("DRAFT_UPDATED", 0)

    print(f"log_path: {path}")
    print(f"audit_records: {stats['total']}")
    for event_type, count in sorted(by_type.items()):
        print(f"  {event_type}: {count}")
    print(f"distinct_sessions: {stats['distinct_sessions']}")
    print(f"distinct_connections: {stats['distinct_connections']}")
    print("submissions_per_draft_update: " + _format_rate(submits, drafts))
    print(f"send_failures: {by_type.get('SEND_FAILED', 0)}")
    if stats["ignored_codes"]:
        print("ignored_inputs:", ", ".join(f"{k}={v}" for k, v in sorted(stats["ignored_codes"].items())))


if __name__ == "__main__":
    main()
