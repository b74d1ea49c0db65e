"""JSON file access and identifier generation."""

import json
import logging
import random
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

logger = logging.getLogger(__name__)


def load_json(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """Load a JSON document. Returns None if the file does not exist.

    Malformed JSON raises json.JSONDecodeError.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No file at %s", path)
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    logger.debug("Loaded %s", path)
    return data


def save_json(path: Union[str, Path], state: Dict[str, Any]) -> None:
    """Write a JSON document, creating the parent directory if needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, ensure_ascii=False)
    logger.debug("Saved %s", path)


def iter_jsonl(path: Union[str, Path]) -> Iterator[Dict[str, Any]]:
    """Parse a JSONL file, yielding one dict per line.

    Skips blank lines, invalid JSON and non-object rows.
    """
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("%s line %d: invalid JSON, skipped", path, lineno)
                continue
            if isinstance(data, dict):
                yield data


def _base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def generate_id() -> str:
    """Return a unique id: millisecond clock + random part, both base 36."""
    millis = int(time.time() * 1000)
    entropy = random.randrange(10**12, 10**13)
    return _base36(millis) + _base36(entropy)
