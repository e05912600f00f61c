from __future__ import annotations
import json
from typing import Any

def canonical_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(',', ':'))
