"""Best-effort extraction of structured data from free-form model replies."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def try_parse_structured(text: Optional[str]) -> Optional[Any]:
    """
    Parse a reply as JSON if it is a JSON object or array.

    Markdown code fences are unwrapped first. Scalars (numbers, bare strings)
    are not considered structured. Never raises.

    Returns:
        The parsed dict/list, or None
    """
    if not text or not isinstance(text, str):
        return None

    candidates = [text.strip()]
    fence = _FENCE_PATTERN.search(text)
    if fence:
        candidates.insert(0, fence.group(1).strip())

    for candidate in candidates:
        if not candidate or candidate[0] not in "{[":
            continue
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError):
            continue
        if isinstance(data, (dict, list)):
            return data
    return None
