from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from config.settings import get_settings


def provider_usage_for_run(run_id: str, log_path: Optional[Path] = None) -> Dict[str, Dict[str, int]]:
    """Aggregate the provider call trace for the given run_id.

    Returns dict like { 'apollo': {'calls': N, 'errors': E, 'duration_ms': T}, ... }
    """
    result: Dict[str, Dict[str, int]] = {}
    path = log_path or Path(get_settings().provider_log_path)
    if not path.exists():
        return result
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            try:
                rec = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(rec, dict) or rec.get("run_id") != run_id:
                continue
            provider = rec.get("provider") or "unknown"
            bucket = result.setdefault(provider, {"calls": 0, "errors": 0, "duration_ms": 0})
            bucket["calls"] += 1
            if rec.get("status") != "ok":
                bucket["errors"] += 1
            if isinstance(rec.get("duration_ms"), int):
                bucket["duration_ms"] += rec["duration_ms"]
    return result


def print_summary(title: str, meta: Dict[str, Any]) -> None:
    """Print summary of a pipeline run."""
    print("\n" + "=" * 60)
    print(title.upper())
    print("=" * 60)
    pagination = meta.get("pagination") or {}
    if pagination:
        print(f"Page: {pagination.get('page')}/{pagination.get('total_pages')} "
              f"(total entries: {pagination.get('total_entries')})")
    labels = [
        ("records_found", "Records Found"),
        ("contacts_mapped", "Contacts Mapped"),
        ("profiles_fetched", "Profiles Fetched"),
        ("profiles_failed", "Profiles Failed"),
        ("emails_requested", "Emails Requested"),
        ("emails_found", "Emails Found"),
        ("leads_created", "Leads Created"),
        ("leads_updated", "Leads Updated"),
    ]
    for key, label in labels:
        if key in meta:
            print(f"  {label}: {meta[key]}")

    settings = get_settings()
    run_id = os.getenv("RUN_ID")
    if run_id and settings.provider_trace:
        usage = provider_usage_for_run(run_id)
        if usage:
            print("Provider Usage:")
            for provider, stats in usage.items():
                print(f"  {provider}: calls={stats['calls']}, errors={stats['errors']}, duration_ms={stats['duration_ms']}")
    print("=" * 60)
