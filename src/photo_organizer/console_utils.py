"""Formatting helpers for console output."""

_SIZE_UNITS = ['Bytes', 'KB', 'MB', 'GB']


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for display, e.g. ``1.5 KB`` or ``0 Bytes``.

    Two decimals at most, trailing zeros dropped, GB is the largest unit.
    """
    if size_bytes <= 0:
        return '0 Bytes'

    unit = 0
    while unit < len(_SIZE_UNITS) - 1 and size_bytes >= 1024 ** (unit + 1):
        unit += 1

    value = f"{size_bytes / 1024 ** unit:.2f}".rstrip('0').rstrip('.')
    return f"{value} {_SIZE_UNITS[unit]}"
