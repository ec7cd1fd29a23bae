"""
Attribute Extractors - dosage, frequency code and duration
All scans run over the original prescription line, not the cleaned probe.
"""
import re
from typing import List, Tuple

from rxscan.models.prescription import (
    ExtractedMedicine, MedicineMatch, AS_PRESCRIBED, DOSAGE_AS_DIRECTED
)

DOSAGE_PATTERNS = [
    re.compile(r'\d+(?:\.\d+)?\s*(?:mg|ml|mcg|g|IU)\b', re.IGNORECASE),
    re.compile(r'\d+(?:\.\d+)?\s*(?:tablets?|capsules?|caps?|pills?|sachets?)\b', re.IGNORECASE),
]

# Clinical shorthand -> phrasing. Checked in order; first hit wins.
FREQUENCY_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ('OD', re.compile(r'once\s*(?:a\s*day|daily)|\b1\s*time\b|\bOD\b', re.IGNORECASE)),
    ('BD', re.compile(r'twice\s*(?:a\s*day|daily)|\b2\s*times\b|\bBD\b|\bBID\b', re.IGNORECASE)),
    ('TDS', re.compile(r'thrice\s*(?:a\s*day|daily)|\b3\s*times\b|three\s*times|\bTDS\b|\bTID\b', re.IGNORECASE)),
    ('SOS', re.compile(r'when\s*needed|as\s*needed|\bSOS\b|pain', re.IGNORECASE)),
    ('HS', re.compile(r'bedtime|night|\bHS\b', re.IGNORECASE)),
    ('BBF', re.compile(r'before\s*(?:breakfast|food|meals?)|empty\s*stomach', re.IGNORECASE)),
    ('AF', re.compile(r'after\s*(?:food|meals?)', re.IGNORECASE)),
]

DURATION_PATTERN = re.compile(r'\d+\s*(?:days?|weeks?|months?)\b', re.IGNORECASE)


def extract_dosage(line: str) -> str:
    for pattern in DOSAGE_PATTERNS:
        match = pattern.search(line)
        if match:
            return match.group(0)
    return AS_PRESCRIBED


def extract_frequency(line: str) -> str:
    for code, pattern in FREQUENCY_PATTERNS:
        if pattern.search(line):
            return code
    return DOSAGE_AS_DIRECTED


def extract_duration(line: str) -> str:
    match = DURATION_PATTERN.search(line)
    return match.group(0) if match else AS_PRESCRIBED


def extract_medicine(match: MedicineMatch) -> ExtractedMedicine:
    """Build the medicine record for a resolved line, keeping the line itself"""
    line = match.source_line
    return ExtractedMedicine(
        name=match.matched_name,
        dosage=extract_dosage(line),
        frequency=extract_frequency(line),
        duration=extract_duration(line),
        original_line=line
    )
