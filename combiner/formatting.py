from decimal import ROUND_HALF_UP, Decimal

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(num_bytes):
    """Render a byte count like ``1.5 KB`` or ``200 MB``."""
    if num_bytes <= 0:
        return "0 Bytes"

    k = 1024
    i = 0
    while i < len(SIZE_UNITS) - 1 and num_bytes >= k ** (i + 1):
        i += 1

    value = (Decimal(num_bytes) / Decimal(k ** i)).quantize(Decimal("0.1"), ROUND_HALF_UP)
    # drop a trailing ".0"
    if value == value.to_integral_value():
        value = int(value)
    return f"{value} {SIZE_UNITS[i]}"
