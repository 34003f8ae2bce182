# apps/backend/chefai/json_extract.py
"""
Best-effort JSON recovery from chat-model output.

Models are asked for bare JSON but routinely wrap it in Markdown fences,
prefix it with prose ("Here you go:") or append notes. These helpers are pure
and never touch the network.
"""
from __future__ import annotations

import json
import re
from typing import Any, Iterator, Optional

# ```json / ```JSON / bare ```, with the rest of that line
_FENCE_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_FENCED_BLOCK_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)```", re.IGNORECASE | re.DOTALL)
_GREEDY_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class JsonExtractionError(ValueError):
    pass


def strip_code_fences(text: str) -> str:
    """Remove every fence marker, keep everything else."""
    return _FENCE_RE.sub("", text or "").strip()


def find_json_block(text: str) -> Optional[str]:
    """Greedy span from the first '{' to the last '}'."""
    m = _GREEDY_OBJECT_RE.search(text or "")
    return m.group(0) if m else None


def _balanced_end(text: str, start: int) -> int:
    """
    Index one past the '}' closing the object opened at text[start], or -1.
    Braces inside string literals (and escaped quotes) are ignored.
    """
    depth = 0
    in_str = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def iter_balanced_objects(text: str) -> Iterator[str]:
    """Yield each balanced {...} candidate, left to right."""
    pos = text.find("{")
    while pos != -1:
        end = _balanced_end(text, pos)
        if end != -1:
            yield text[pos:end]
        pos = text.find("{", pos + 1)


def extract_json(text: Optional[str]) -> Any:
    """
    1. content of the first fenced block, if any
    2. the whole text with fence markers removed
    3. first balanced {...} that parses
    """
    if text is None or not text.strip():
        raise JsonExtractionError("empty response")

    m = _FENCED_BLOCK_RE.search(text)
    if m:
        try:
            return json.loads(m.group(1).strip())
        except ValueError:
            pass

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    for candidate in iter_balanced_objects(cleaned):
        try:
            return json.loads(candidate)
        except ValueError:
            continue

    raise JsonExtractionError("no JSON object found in response")
