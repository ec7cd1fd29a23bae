"""
Field Classifiers - heuristic scans over candidate prescription lines

Doctor name and diagnosis are first-match-wins in document order. The
medicine-line rule is deliberately permissive: any line with a dosage unit,
or any line shorter than 50 characters, is forwarded to the medicine name
resolver. It favours recall over precision (headers and dates also pass) and
is a heuristic, not a calibrated classifier; the resolver's vocabulary match
is what filters the noise.
"""
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

DOCTOR_PATTERN = re.compile(r'\b(?i:Dr\.|Doctor|Physician)\s*([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)')
DIAGNOSIS_PATTERN = re.compile(r'^(?:Diagnosis|Dx|Impression)\b[\s:\-.]*([^\s:\-.].*)$', re.IGNORECASE)
DOSAGE_UNIT_PATTERN = re.compile(r'\d+\s*(?:mg|ml|tab)', re.IGNORECASE)

SHORT_LINE_LIMIT = 50


@dataclass
class ClassifiedLines:
    """Classifier output for one document"""
    doctor_name: Optional[str] = None
    diagnosis: Optional[str] = None
    medicine_candidates: List[str] = field(default_factory=list)


def match_doctor_name(line: str) -> Optional[str]:
    match = DOCTOR_PATTERN.search(line)
    return match.group(1).strip() if match else None


def match_diagnosis(line: str) -> Optional[str]:
    match = DIAGNOSIS_PATTERN.match(line)
    return match.group(1).strip() if match else None


def is_medicine_candidate(line: str) -> bool:
    """Dosage unit present, or the line is short"""
    return bool(DOSAGE_UNIT_PATTERN.search(line)) or len(line) < SHORT_LINE_LIMIT


def find_doctor_name(lines: Iterable[str]) -> Optional[str]:
    for line in lines:
        name = match_doctor_name(line)
        if name:
            return name
    return None


def find_diagnosis(lines: Iterable[str]) -> Optional[str]:
    for line in lines:
        diagnosis = match_diagnosis(line)
        if diagnosis:
            return diagnosis
    return None


def classify(lines: Iterable[str]) -> ClassifiedLines:
    """Single pass over the lines; each field keeps its first match"""
    result = ClassifiedLines()

    for line in lines:
        if result.doctor_name is None:
            result.doctor_name = match_doctor_name(line)

        if result.diagnosis is None:
            result.diagnosis = match_diagnosis(line)

        if is_medicine_candidate(line):
            result.medicine_candidates.append(line)

    return result
