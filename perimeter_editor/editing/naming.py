"""Default names for newly drawn boundaries ("Zone_01", "Zone_02", ...)."""

import re
from typing import Iterable


def next_boundary_name(existing_names: Iterable[str], base: str = "Zone") -> str:
    """
    Smallest free "{base}_NN" name (two-digit zero padded).

    Only names of the exact form "{base}_<digits>" count as used.

    Example:
        >>> next_boundary_name(["Zone_01", "Zone_03", "Gate"])
        'Zone_02'
    """
    pattern = re.compile(rf"^{re.escape(base)}_(\d+)$")
    used = set()
    for name in existing_names:
        match = pattern.match(name)
        if match:
            used.add(int(match.group(1)))

    next_number = 1
    for number in sorted(n for n in used if n > 0):
        if number != next_number:
            break
        next_number += 1

    return f"{base}_{next_number:02d}"
