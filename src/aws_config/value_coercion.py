"""
Scalar coercion for values read from AWS config files.
"""
import re
from typing import Dict, Optional, Union

# Tagged scalar: the Python type of the value is the tag.
Value = Union[int, float, str]
SettingValue = Union[Value, Dict[str, Value]]

FLOAT_PATTERN = re.compile(r"^[+-]?\d+\.\d+(?:[eE][+-]?\d+)?$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


def coerce(raw: Optional[str]) -> Value:
    """
    Convert a raw scalar to an int, float or str.

    Empty or missing input becomes ``0``. Surrounding whitespace is ignored,
    and anything that does not parse as a number is returned stripped. The
    whole value must be numeric: ``"1.5abc"`` stays a string, it is not read
    as ``1.5``.
    """
    if raw is None:
        return 0
    stripped = raw.strip()
    if not stripped:
        return 0
    if FLOAT_PATTERN.match(stripped):
        return float(stripped)
    if INTEGER_PATTERN.match(stripped):
        return int(stripped)
    return stripped


def as_string(value: Optional[SettingValue]) -> Optional[str]:
    """Return the string form of a scalar setting, or None for nested blocks."""
    if value is None or isinstance(value, dict):
        return None
    return str(value)
