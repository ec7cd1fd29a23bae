"""
Medicine Name Resolver
Fuzzy-matches the leading words of a prescription line against the medicine
vocabulary using Levenshtein distance with a length-proportional tolerance.
"""
import logging
import math
import re
from typing import List, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from rxscan.models.prescription import MedicineMatch
from rxscan.services.medicine_vocabulary import MedicineVocabulary, default_vocabulary

logger = logging.getLogger(__name__)

# Longer names tolerate proportionally more misread characters
ERROR_TOLERANCE = 0.4
MIN_PROBE_LENGTH = 3
PROBE_TOKENS = 2

# Dosage-form prefixes written before the medicine name ("Tab. Dolo 650")
FORM_PREFIXES = {
    'tab', 'tabs', 'tablet', 'cap', 'caps', 'capsule', 'syp', 'syr', 'syrup',
    'inj', 'injection', 'susp', 'oint', 'drops', 'gel', 'sachet',
}

_NON_ALPHA = re.compile(r'[^a-zA-Z]')


def clean_probe(text: str) -> str:
    """Strip every non-alphabetic character"""
    return _NON_ALPHA.sub('', text)


def tolerance_for(entry: str) -> int:
    return math.floor(ERROR_TOLERANCE * len(entry))


class MedicineResolver:
    """Resolves a candidate line to at most one vocabulary entry"""

    def __init__(self, vocabulary: MedicineVocabulary = None):
        self.vocabulary = vocabulary or default_vocabulary

    def probes(self, line: str) -> List[str]:
        """
        Cleaned probe strings for a line, most specific first: the first two
        name tokens together, then the first token alone.
        """
        tokens = line.split()
        if tokens and clean_probe(tokens[0]).lower() in FORM_PREFIXES and len(tokens) > 1:
            tokens = tokens[1:]

        window = tokens[:PROBE_TOKENS]
        candidates = [clean_probe(" ".join(window))]
        if len(window) > 1:
            candidates.append(clean_probe(window[0]))

        probes = []
        for probe in candidates:
            if len(probe) >= MIN_PROBE_LENGTH and probe not in probes:
                probes.append(probe)
        return probes

    def best_match(self, probe: str, entries: Sequence[str]) -> Optional[MedicineMatch]:
        """Closest acceptable entry for one probe; ties go to the earliest entry"""
        folded = probe.casefold()
        best_entry = None
        best_distance = None

        for entry in entries:
            threshold = tolerance_for(entry)
            key = entry.casefold()
            distance = Levenshtein.distance(folded, key, score_cutoff=threshold)
            if distance > threshold:
                continue
            if best_distance is None or distance < best_distance:
                best_entry, best_distance = entry, distance
                if distance == 0:
                    break

        if best_entry is None:
            return None
        return MedicineMatch(matched_name=best_entry, source_line="", distance=best_distance)

    def resolve(self, line: str) -> Optional[MedicineMatch]:
        for probe in self.probes(line):
            match = self.best_match(probe, self.vocabulary.lookup(probe))
            if match:
                logger.debug(f"Matched '{probe}' -> {match.matched_name} (distance {match.distance})")
                return MedicineMatch(
                    matched_name=match.matched_name,
                    source_line=line,
                    distance=match.distance
                )
        return None
