"""
Numbers in the features and descriptor files are always written with a decimal
point. Some libraries (e.g. ROS) set a system locale using decimal commas,
which corrupts float text. Pin the process locale before touching those files.
"""

import locale

FLOAT_FORMAT = "%.9g"  # Enough digits to round-trip float32 exactly


def pin_numeric_locale() -> str:
    """Switch the process to the C locale and return the previous LC_NUMERIC."""
    previous = locale.setlocale(locale.LC_NUMERIC)
    try:
        locale.setlocale(locale.LC_ALL, "C")
    except locale.Error:
        locale.setlocale(locale.LC_ALL, "POSIX")
    return previous


def format_float(value) -> str:
    # %-formatting ignores the locale, unlike locale.format_string / "{:n}"
    return FLOAT_FORMAT % float(value)


def parse_float(text: str) -> float:
    # float() only accepts '.', whatever LC_NUMERIC says, but also "1_0" and non-ASCII digits
    if not text.isascii() or "_" in text or text != text.strip():
        raise ValueError(f"could not convert string to float: {text!r}")
    return float(text)
