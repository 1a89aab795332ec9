import json
import math
from typing import Any, List, Union

Number = Union[int, float]


def is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def parse_number_list(raw: Any) -> List[Number]:
    """
    "5, 2, 8"  /  "[5, 2, 8]"  /  [5, 2, 8]   →   [5, 2, 8]

    Raises ValueError unless every element is a finite number.
    """
    if isinstance(raw, (list, tuple)):
        values = list(raw)
    else:
        text = str(raw if raw is not None else "").strip()
        if text.startswith("[") and text.endswith("]"):
            text = text[1:-1].strip()
        if not text:
            raise ValueError("array is empty")
        try:
            # parse_constant rejects NaN / Infinity literals
            values = json.loads(f"[{text}]", parse_constant=_reject_constant)
        except ValueError as exc:
            raise ValueError(f"not a comma-separated list of numbers: {exc}") from None

    if not values:
        raise ValueError("array is empty")
    for i, v in enumerate(values):
        if not is_number(v):
            raise ValueError(f"element {i} ({v!r}) is not a finite number")
    return values


def parse_number(raw: Any) -> Number:
    """A single numeric field such as a search target."""
    if is_number(raw):
        return raw
    text = str(raw).strip()
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{raw!r} is not a number") from None
    if not math.isfinite(value):
        raise ValueError(f"{raw!r} is not a finite number")
    return int(value) if value.is_integer() and "." not in text and "e" not in text.lower() else value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not allowed")
