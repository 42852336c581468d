"""
JSON-encoded Text columns.

Lists and small dicts (tags, distortions, recommendations, data_sources) are
stored as JSON text so the schema stays portable between Postgres and SQLite.
"""
from __future__ import annotations

import json
from typing import Any, Optional


def jdump(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def jload_list(text: Optional[str]) -> list[str]:
    if not text:
        return []
    try:
        result = json.loads(text)
        return result if isinstance(result, list) else []
    except (ValueError, TypeError):
        return []


def jload_dict(text: Optional[str]) -> dict[str, Any]:
    if not text:
        return {}
    try:
        result = json.loads(text)
        return result if isinstance(result, dict) else {}
    except (ValueError, TypeError):
        return {}
