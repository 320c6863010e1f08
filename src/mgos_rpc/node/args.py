"""
RPC Argument Formatting.

Command line style arguments arrive as a flat `name -> string` map. Values
that parse as a float (base-10, or hex with a binary exponent such as
`0x1p4`) are sent to the device as JSON numbers, all others as JSON strings.
"""
import json
import math
import re
from typing import Dict, Mapping, Union

ArgValue = Union[float, str]

# float() also accepts surrounding whitespace and "1_000"; the device does not.
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
# Hex floats need the binary exponent, e.g. "0x1p4" or "-0x1.8p1".
_HEX = re.compile(r"[+-]?0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?\d+")


def parse_value(value: str) -> ArgValue:
    """Returns `value` as a float if it is a finite number, else unchanged."""
    if _DECIMAL.fullmatch(value):
        number = float(value)
    elif _HEX.fullmatch(value):
        try:
            number = float.fromhex(value)
        except OverflowError:
            return value
    else:
        return value
    if not math.isfinite(number):
        return value
    return number


def format_args(args: Mapping[str, str]) -> Dict[str, ArgValue]:
    """Converts a string argument map into typed RPC arguments."""
    return {name: parse_value(value) for name, value in args.items()}


def format_args_fragment(args: Mapping[str, str]) -> str:
    """
    Renders the arguments as the body of a JSON object literal.

    >>> format_args_fragment({"name": "RPC.Hello", "count": "3"})
    '"name": "RPC.Hello", "count": 3.000000'
    """
    fragments = []
    for name, value in format_args(args).items():
        if isinstance(value, float):
            fragments.append(f"{json.dumps(name)}: {value:f}")
        else:
            fragments.append(f"{json.dumps(name)}: {json.dumps(value)}")
    return ", ".join(fragments)
