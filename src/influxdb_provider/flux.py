"""
Flux query normalization for task reconciliation.

InfluxDB stores a task's schedule inside its query as an ``option task = {...}``
block prepended to the body. These helpers find that block by brace matching,
strip it for storage and comparison, splice a new body behind an existing
block, and normalize whitespace so cosmetic edits do not register as drift.
"""

import json
from typing import Optional, Tuple

OPTION_TASK_MARKER = "option task = {"


def find_option_task_span(flux: str) -> Optional[Tuple[int, int]]:
    """
    Locate the ``option task = {...}`` block in a query.

    Scans forward from the marker tracking brace depth so nested braces in
    the block do not end it early.

    Args:
        flux: The query text

    Returns:
        (start, end) where ``flux[start:end]`` is the block including its
        closing brace, or None when there is no block or it is unbalanced.
    """
    start = flux.find(OPTION_TASK_MARKER)
    if start == -1:
        return None

    depth = 0
    for index in range(start, len(flux)):
        char = flux[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return start, index + 1

    return None


def strip_option_task(flux: str) -> str:
    """
    Remove the scheduling preamble from a query.

    Only the text after the block's closing brace is kept, trimmed. A query
    without a (balanced) block is returned unchanged.
    """
    span = find_option_task_span(flux)
    if span is None:
        return flux
    return flux[span[1] :].strip()


def splice_option_task(current_flux: str, new_flux: str) -> str:
    """
    Put a new body behind the preamble of the currently stored query.

    Args:
        current_flux: The query as stored remotely, possibly with a preamble
        new_flux: The caller's query, possibly carrying its own preamble

    Returns:
        ``{existing preamble} {new body}``, or just the new body when the
        stored query has no preamble.
    """
    body = strip_option_task(new_flux)
    span = find_option_task_span(current_flux)
    if span is None:
        return body
    return current_flux[: span[1]] + " " + body


def normalize_flux_for_comparison(flux: str) -> str:
    """Trim every line and drop blank ones."""
    lines = [line.strip() for line in flux.split("\n")]
    return "\n".join(line for line in lines if line)


def flux_equivalent(a: str, b: str) -> bool:
    """True when two queries differ only in blank lines or line indentation."""
    return normalize_flux_for_comparison(a) == normalize_flux_for_comparison(b)


def build_option_task_header(
    name: str,
    every: Optional[str] = None,
    cron: Optional[str] = None,
    offset: Optional[str] = None,
) -> str:
    """
    Render the ``option task`` block InfluxDB expects on task creation.

    Durations are Flux literals and stay unquoted; name and cron are strings.
    """
    parts = [f"name: {json.dumps(name, ensure_ascii=False)}"]
    if every:
        parts.append(f"every: {every}")
    if cron:
        parts.append(f"cron: {json.dumps(cron, ensure_ascii=False)}")
    if offset:
        parts.append(f"offset: {offset}")
    return "option task = { " + ", ".join(parts) + " }"
