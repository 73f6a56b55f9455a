"""
Pull a JSON object out of free-form model output.
"""
import json
import re
from typing import Any, Dict, Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def extract_json_object(content: Any) -> Optional[Dict[str, Any]]:
    """
    Return the first {...} span in content parsed as a dict, or None.

    Markdown code fences are stripped first. The span runs from the first
    "{" to the last "}", so surrounding prose is ignored but two separate
    objects in one reply will not parse. Anything that is not a string
    yields None.
    """
    if not content or not isinstance(content, str):
        return None

    text = content.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None

    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None

    return parsed if isinstance(parsed, dict) else None
