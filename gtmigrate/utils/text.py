from __future__ import annotations


def truncate_output(s: str, max_len: int) -> str:
    """Bound ``s`` to ``max_len`` characters for display.

    Strings that fit are returned unchanged. Longer strings get a ``...``
    suffix when there is room for it, otherwise they are cut hard.
    """
    if len(s) <= max_len:
        return s
    if max_len < 4:
        return s[: max(max_len, 0)]
    return s[: max_len - 3] + "..."
