"""Recognise records already written in an earlier poll.

The dedup key is the full record string, not its timestamp: the server
stamps with millisecond resolution and equal timestamps are common, while
two distinct records are never byte-identical. A structured key (timestamp
plus a message hash) would also break when the server adds envelope fields.
"""
from __future__ import annotations


def check_last_emitted(logs: list[str], last_emitted: str) -> tuple[list[str], str, bool]:
    """Split off the records of an oldest-first page that come after ``last_emitted``.

    Returns ``(to_emit, new_last_emitted, all_new)``. ``all_new`` is True only
    when ``last_emitted`` does not occur on the page at all, which tells the
    pager the previous boundary may lie on a later page.
    """
    if not logs:
        return [], last_emitted, False

    newest = logs[-1]
    try:
        i = logs.index(last_emitted)
    except ValueError:
        return list(logs), newest, True

    if i == len(logs) - 1:
        return [], last_emitted, False
    return logs[i + 1:], newest, False
