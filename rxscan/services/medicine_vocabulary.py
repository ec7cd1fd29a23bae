"""
Medicine Vocabulary - read-only reference list of medicine names

Brand and generic names share one flat list. The order matters: when two
entries are equally close to an OCR probe, the earlier entry wins.
"""
import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from rxscan.config import settings

logger = logging.getLogger(__name__)

DEFAULT_MEDICINES: Tuple[str, ...] = (
    # Analgesics / antipyretics
    "Paracetamol", "Dolo", "Crocin", "Calpol", "Metacin",
    "Ibuprofen", "Brufen", "Combiflam", "Advil",
    # Antihistamines
    "Cetirizine", "Okacet", "Cetzine", "Zyrtec",
    "Levocetirizine", "Levocet", "Teczine",
    # Antibiotics
    "Amoxicillin", "Mox", "Novamox", "Augmentin", "Clamp",
    "Azithromycin", "Azithral", "Azee", "Zithromax",
    # Proton pump inhibitors
    "Pantoprazole", "Pan", "Pantocid", "Pantop",
    "Omeprazole", "Omez",
    "Rabeprazole", "Rablet", "Razo",
    # Respiratory
    "Montelukast", "Montek", "Telekast",
    # Diabetes
    "Metformin", "Glycomet", "Glucophage",
    # Cardiovascular
    "Amlodipine", "Amlong", "Stamlo",
    "Telmisartan", "Telma", "Telmikind",
    "Atorvastatin", "Atorva", "Lipitor",
    "Rosuvastatin", "Rosuvas",
    "Aspirin", "Ecosprin", "Disprin",
    "Clopidogrel", "Clavix",
    # Thyroid
    "Thyroxine", "Thyronorm", "Eltroxin",
    # Antacids
    "Metogel", "Digene", "Gelusil", "Mucaine",
    # Supplements
    "Multivitamin", "Becosules", "Supradyn", "Zincovit",
    "Calcium", "Shelcal", "Caldikind",
    "Vitamin D3", "Uprise D3", "Arachitol",
    "Iron", "Dexorange", "Fefol",
    # Cough and cold
    "Cough Syrup", "Benadryl", "Ascoril", "Grilinctus",
    # Generic categories
    "Antibiotic", "Painkiller", "Antacid",
)


class MedicineVocabulary:
    """Immutable, ordered set of canonical medicine names"""

    def __init__(self, names: Iterable[str] = DEFAULT_MEDICINES, source: str = "builtin"):
        seen = set()
        entries: List[str] = []
        for name in names:
            name = str(name).strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                entries.append(name)
        self._entries: Tuple[str, ...] = tuple(entries)
        self._folded = frozenset(seen)
        self.source = source

    def lookup(self, candidate: str) -> List[str]:
        """Entries eligible for matching against a probe, in vocabulary order"""
        return list(self._entries)

    @property
    def entries(self) -> Tuple[str, ...]:
        return self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._folded

    def __repr__(self):
        return f"<MedicineVocabulary {self.source} ({len(self)} entries)>"

    @classmethod
    def from_file(cls, path: Path) -> "MedicineVocabulary":
        """
        Load names from JSON: either a list of names or {"medicines": [...]}
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get("medicines")
        if not isinstance(data, list) or not all(isinstance(n, str) for n in data):
            raise ValueError(f"{path} must contain a list of medicine names")

        return cls(data, source=str(path))


def load_vocabulary(path: Optional[Path] = None) -> MedicineVocabulary:
    """Load the configured vocabulary, falling back to the built-in list"""
    path = path or settings.MEDICINE_VOCABULARY_FILE
    if path is None:
        return MedicineVocabulary()

    try:
        vocabulary = MedicineVocabulary.from_file(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load medicine vocabulary from {path}: {e}; using built-in list")
        return MedicineVocabulary()

    if not len(vocabulary):
        logger.warning(f"Medicine vocabulary {path} is empty; using built-in list")
        return MedicineVocabulary()

    logger.info(f"Loaded medicine vocabulary with {len(vocabulary)} entries from {path}")
    return vocabulary


default_vocabulary = load_vocabulary()
