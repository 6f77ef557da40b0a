"""All-or-nothing JSON file writes.

WHY: The frequency table, the learned-lexicon export, and the practice
progress file are each rewritten in full. A crash halfway through a plain
write would leave a truncated file and lose every previous session.

HOW: Write to a temp file in the target's directory (same filesystem),
then os.replace() it over the target, which is atomic.

RULES:
- Parent directories are created as needed
- The temp file is removed if anything fails before the replace
- UTF-8, ensure_ascii=False (Vietnamese stays readable), indent=2
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_json_atomic(path: str | Path, data: Any) -> None:
    """Serialize data as JSON and atomically replace the file at path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
