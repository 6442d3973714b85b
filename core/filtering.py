import re
from typing import List, Union

from .types import FileRecord


class InvalidPattern(ValueError):
    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid regex provided: {pattern!r} ({reason})")
        self.pattern = pattern
        self.reason = reason


def compile_pattern(text: str) -> re.Pattern:
    """Compile the user's deletion regex, raising InvalidPattern if it is malformed."""
    try:
        return re.compile(text)
    except re.error as e:
        raise InvalidPattern(text, str(e)) from e


def filter_files(files: List[FileRecord], pattern: Union[str, re.Pattern]) -> List[FileRecord]:
    """
    Return the records whose name matches pattern, preserving order.
    Matching is unanchored (re.search), so anchors must be written explicitly.
    """
    if isinstance(pattern, str):
        pattern = compile_pattern(pattern)
    return [f for f in files if pattern.search(f.name)]
