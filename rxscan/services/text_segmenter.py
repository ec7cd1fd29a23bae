"""
Line segmentation of recognized prescription text
"""
import re
from typing import List

MIN_LINE_LENGTH = 3

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


def segment(text: str) -> List[str]:
    """Split text into trimmed candidate lines longer than two characters, in order"""
    if not text:
        return []
    lines = (line.strip() for line in _LINE_BREAK.split(text))
    return [line for line in lines if len(line) >= MIN_LINE_LENGTH]
