from __future__ import annotations


def format_kilobytes(byte_count: int) -> str:
    return f"{byte_count / 1024:.2f} KB"


def format_bytes(byte_count: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(byte_count)
    unit_index = 0

    while abs(value) >= 1024 and unit_index < len(units) - 1:
        value /= 1024
        unit_index += 1

    return f"{value:.2f} {units[unit_index]}"
