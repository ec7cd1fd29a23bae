import json
import math

import pytest
from rapidfuzz.distance import Levenshtein

from rxscan.services.medicine_resolver import MedicineResolver, tolerance_for
from rxscan.services.medicine_vocabulary import (
    DEFAULT_MEDICINES, MedicineVocabulary, load_vocabulary
)


@pytest.fixture
def resolver():
    return MedicineResolver(MedicineVocabulary())


class TestVocabulary:

    def test_default_list_is_ordered_and_deduplicated(self):
        vocabulary = MedicineVocabulary(["Dolo", "dolo", " Crocin ", "", "Pan"])
        assert vocabulary.entries == ("Dolo", "Crocin", "Pan")
        assert "DOLO" in vocabulary
        assert "Paracetamol" not in vocabulary

    def test_lookup_returns_entries_in_order(self):
        vocabulary = MedicineVocabulary()
        assert vocabulary.lookup("anything") == list(DEFAULT_MEDICINES)

    def test_entries_are_immutable(self):
        vocabulary = MedicineVocabulary()
        with pytest.raises(AttributeError):
            vocabulary.entries.append("Foo")

    def test_load_from_json_list(self, tmp_path):
        path = tmp_path / "medicines.json"
        path.write_text(json.dumps(["Zerodol", "Ultracet"]))
        vocabulary = load_vocabulary(path)
        assert vocabulary.entries == ("Zerodol", "Ultracet")
        assert vocabulary.source == str(path)

    def test_load_from_json_object(self, tmp_path):
        path = tmp_path / "medicines.json"
        path.write_text(json.dumps({"medicines": ["Nucoxia"]}))
        assert load_vocabulary(path).entries == ("Nucoxia",)

    def test_bad_file_falls_back_to_builtin(self, tmp_path):
        path = tmp_path / "medicines.json"
        path.write_text("{not json")
        assert load_vocabulary(path).entries == DEFAULT_MEDICINES
        assert load_vocabulary(tmp_path / "missing.json").entries == DEFAULT_MEDICINES

    def test_empty_file_falls_back_to_builtin(self, tmp_path):
        path = tmp_path / "medicines.json"
        path.write_text("[]")
        assert load_vocabulary(path).entries == DEFAULT_MEDICINES


class TestResolve:

    def test_dosage_token_falls_back_to_first_word(self, resolver):
        match = resolver.resolve("Dolo 650mg twice a day for 5 days")
        assert match.matched_name == "Dolo"
        assert match.distance == 0
        assert match.source_line == "Dolo 650mg twice a day for 5 days"

    def test_ocr_noise_within_tolerance(self, resolver):
        match = resolver.resolve("Paracetarnol")
        assert match.matched_name == "Paracetamol"
        assert match.distance == 2

    def test_case_is_ignored(self, resolver):
        assert resolver.resolve("AUGMENTIN 625").matched_name == "Augmentin"

    def test_form_prefix_is_skipped(self, resolver):
        assert resolver.resolve("Tab. Crocin 500").matched_name == "Crocin"
        assert resolver.resolve("Cap Omez 20mg").matched_name == "Omez"

    def test_two_word_names(self, resolver):
        match = resolver.resolve("Vitamin D3 60000 IU weekly")
        assert match.matched_name == "Vitamin D3"
        assert match.distance == 2
        assert resolver.resolve("Cough Syrup 10ml").matched_name == "Cough Syrup"

    def test_unrecognizable_scrawl_is_rejected(self, resolver):
        assert resolver.resolve("Xqzv 10mg") is None

    @pytest.mark.parametrize("line", ["500", "1-0-1", "x2", "ab 12", "Dr", "  "])
    def test_lines_too_short_to_match_are_rejected(self, resolver, line):
        assert resolver.probes(line) == []
        assert resolver.resolve(line) is None

    @pytest.mark.parametrize("entry", [e for e in DEFAULT_MEDICINES if " " not in e])
    def test_exact_entry_matches_itself(self, resolver, entry):
        match = resolver.resolve(entry)
        assert match.matched_name == entry
        assert match.distance == 0

    @pytest.mark.parametrize("entry", [e for e in DEFAULT_MEDICINES if " " in e])
    def test_multi_word_entry_matches_itself(self, resolver, entry):
        match = resolver.resolve(entry)
        assert match.matched_name == entry
        assert match.distance == Levenshtein.distance(resolver.probes(entry)[0].casefold(), entry.casefold())

    def test_accepted_distance_respects_tolerance(self, resolver):
        lines = ["Paracetarnol 500mg", "Azithrornycin", "Montelucast 10", "Levocetrizine", "Glycomat",
                 "Vitamin D3 60000 IU", "Uprise D 1 cap", "Cough Syrup 10ml"]
        for line in lines:
            match = resolver.resolve(line)
            assert match is not None, line
            entry_key = match.matched_name.casefold()
            distances = [Levenshtein.distance(p.casefold(), entry_key) for p in resolver.probes(line)]
            assert match.distance in distances
            assert match.distance <= math.floor(0.4 * len(match.matched_name))

    def test_tolerance_scales_with_length(self):
        assert tolerance_for("Pan") == 1
        assert tolerance_for("Dolo") == 1
        assert tolerance_for("Telma") == 2
        assert tolerance_for("Levocetirizine") == 5

    def test_ties_go_to_earlier_entry(self):
        resolver = MedicineResolver(MedicineVocabulary(["Bolo", "Colo"]))
        assert resolver.resolve("Aolo").matched_name == "Bolo"

    def test_closer_entry_wins_over_earlier_one(self):
        resolver = MedicineResolver(MedicineVocabulary(["Dolor", "Dolo"]))
        match = resolver.resolve("Dolo")
        assert match.matched_name == "Dolo"
        assert match.distance == 0

    def test_custom_vocabulary(self):
        resolver = MedicineResolver(MedicineVocabulary(["Zerodol"]))
        assert resolver.resolve("Zerodol SP").matched_name == "Zerodol"
        assert resolver.resolve("Dolo 650") is None

    @pytest.mark.parametrize("line", ["Upri 500mg", "Uprimg"])
    def test_multi_word_entry_gets_no_extra_slack(self, resolver, line):
        # "uprimg" is 5 edits from "uprise d3", whose tolerance is 3
        assert resolver.resolve(line) is None
