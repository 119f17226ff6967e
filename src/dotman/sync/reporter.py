"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``format_pair_line`` -- one ``\\t<glyph> <name>`` line per processed pair.
- ``format_sync_report`` -- full post-run summary.
- ``format_pair_list`` -- registered pairs with their mirrors.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ManagedPair, PairResult, SyncReport

from .models import SyncOutcome


def format_pair_line(
    result: PairResult, applied_glyph: str = "✓", skipped_glyph: str = "-"
) -> str:
    """Format one processed pair the way it is streamed to stdout."""
    glyph = (
        applied_glyph
        if result.outcome == SyncOutcome.APPLIED
        else skipped_glyph
    )
    return f"\t{glyph} {result.name}"


def format_sync_report(
    report: SyncReport,
    applied_glyph: str = "✓",
    skipped_glyph: str = "-",
) -> str:
    """Format a complete sync report as human-readable text.

    Args:
        report: The completed sync report.
        applied_glyph: Marker for applied pairs.
        skipped_glyph: Marker for skipped pairs.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"{report.direction.value.capitalize()} report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    for r in report.results:
        lines.append(format_pair_line(r, applied_glyph, skipped_glyph))
    if report.results:
        lines.append("")

    lines.append(
        f"{len(report.results)} pairs: "
        f"{len(report.applied)} applied, {len(report.skipped)} skipped"
    )
    if report.hooks_fired:
        hooks = ", ".join(h.value for h in report.hooks_fired)
        lines.append(f"Hooks: {hooks}")

    return "\n".join(lines).rstrip()


def format_pair_list(pairs: list[tuple[ManagedPair, Path]]) -> str:
    """Format registered pairs as ``name: place -> mirror`` lines."""
    if not pairs:
        return "No pairs registered."
    width = max(len(pair.name) for pair, _ in pairs)
    return "\n".join(
        f"{pair.name:<{width}}  {pair.place} -> {mirror}"
        for pair, mirror in pairs
    )


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with run info, counts, and per-pair details.
    """
    return {
        "direction": report.direction.value,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "applied": len(report.applied),
            "skipped": len(report.skipped),
        },
        "hooks_fired": [h.value for h in report.hooks_fired],
        "results": [
            {
                "name": r.name,
                "state": r.state.value,
                "outcome": r.outcome.value,
            }
            for r in report.results
        ],
    }
