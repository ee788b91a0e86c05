from __future__ import annotations

import dataclasses
import unittest

from contracts.protocols import TitleStatus
from protocols.drug_names import DrugNameCanonicalizer
from protocols.rules import default_ruleset
from protocols.titles import (
    clean_title_hint,
    extract_title_from_content,
    is_title_corrupted,
    resolve_title,
    title_signatures,
)


class TestTitleSignatures(unittest.TestCase):
    def setUp(self) -> None:
        self.rules = default_ruleset()

    def test_dci_fragment_is_flagged(self) -> None:
        sigs = title_signatures("): DCI", self.rules)
        self.assertIn("bad_start", sigs)
        self.assertIn("dci_fragment", sigs)

    def test_header_and_table_fragments_are_flagged(self) -> None:
        self.assertIn("header_fragment", title_signatures("ă tor poziţiei nr. 17", self.rules))
        self.assertIn("table_header", title_signatures("COD PROTOCOL DENUMIRE", self.rules))
        self.assertIn("empty_code_reference", title_signatures("Protocol terapeutic cod ()", self.rules))
        self.assertIn("too_short", title_signatures("AB", self.rules))

    def test_acronym_like_titles(self) -> None:
        self.assertIn("acronym_like", title_signatures("HTP", self.rules))
        self.assertIn("acronym_like", title_signatures("CI01", self.rules))
        self.assertNotIn("acronym_like", title_signatures("ORLISTATUM", self.rules))

    def test_plain_titles_are_valid(self) -> None:
        for t in ("ORLISTATUM", "Diabet zaharat tip 1", "INSULINUM LISPRO"):
            self.assertFalse(is_title_corrupted(t, self.rules), t)


class TestResolveTitle(unittest.TestCase):
    def setUp(self) -> None:
        self.rules = default_ruleset()

    def test_valid_title_is_never_touched(self) -> None:
        r = resolve_title(code="A001E", title="ORLISTATUM", dci=None, content="", ruleset=self.rules)
        self.assertEqual((r.title, r.status, r.source), ("ORLISTATUM", TitleStatus.VALID, None))
        self.assertEqual(r.signatures, ())

    def test_known_title_replaces_a_corrupted_one_exactly(self) -> None:
        rules = dataclasses.replace(self.rules, known_titles={"A017E": "METHYLPHENIDATUM"})
        r = resolve_title(
            code="A017E",
            title="): DCI",
            dci="ORLISTATUM",
            content="Protocol terapeutic cod (A017E): DCI ALTCEVA",
            ruleset=rules,
        )
        self.assertEqual(r.title, "METHYLPHENIDATUM")
        self.assertEqual(r.status, TitleStatus.CORRECTED)
        self.assertEqual(r.source, "known_title")

    def test_title_from_the_section_header(self) -> None:
        content = "Protocol terapeutic corespunzător poziţiei nr. 5 cod (Z901A): DCI FOOBARUM\ntext"
        r = resolve_title(
            code="Z901A",
            title="corespunzător poziţiei nr. 5",
            dci="ALTCEVA",
            content=content,
            ruleset=self.rules,
        )
        self.assertEqual((r.title, r.source), ("FOOBARUM", "content_header"))

    def test_title_from_a_drug_like_word(self) -> None:
        content = "I. Definiţie\nTratament cu SORAFENIBUM 400 mg"
        self.assertEqual(extract_title_from_content("Z902A", content), ("SORAFENIBUM", "content_drug_name"))

    def test_title_from_a_descriptive_line(self) -> None:
        content = "1. Introducere\nBoala cronică de rinichi în stadiul avansat\n"
        self.assertEqual(
            extract_title_from_content("Z903A", content),
            ("Boala cronică de rinichi în stadiul avansat", "content_description"),
        )

    def test_dci_is_used_when_content_gives_nothing(self) -> None:
        r = resolve_title(code="Z901A", title="): DCI", dci="INSULINUM LISPRO", content="", ruleset=self.rules)
        self.assertEqual((r.title, r.status, r.source), ("INSULINUM LISPRO", TitleStatus.CORRECTED, "dci"))

    def test_uncorrectable_title_is_kept_and_reported(self) -> None:
        r = resolve_title(code="Z901A", title="): DCI", dci=None, content="", ruleset=self.rules)
        self.assertEqual(r.title, "): DCI")
        self.assertEqual(r.status, TitleStatus.UNCORRECTED)
        self.assertIsNone(r.source)
        self.assertTrue(r.signatures)

    def test_corrupted_dci_is_not_used(self) -> None:
        r = resolve_title(code="Z901A", title="): DCI", dci="corespunzător", content="", ruleset=self.rules)
        self.assertEqual(r.status, TitleStatus.UNCORRECTED)

    def test_corrupted_content_title_is_not_used(self) -> None:
        content = "Tratamentului se prescrie de medicul specialist"
        self.assertEqual(extract_title_from_content("Z999E", content), (content, "content_description"))

        r = resolve_title(code="Z999E", title="): DCI", dci=None, content=content, ruleset=self.rules)
        self.assertEqual(r.title, "): DCI")
        self.assertEqual(r.status, TitleStatus.UNCORRECTED)
        self.assertIsNone(r.source)

    def test_later_strategy_is_tried_after_a_corrupted_one(self) -> None:
        content = "Protocol terapeutic cod (Z904A): ABC1\nBoala cronică de rinichi în stadiul avansat"
        self.assertEqual(extract_title_from_content("Z904A", content), ("ABC1", "content_header"))

        r = resolve_title(code="Z904A", title="): DCI", dci="INSULINUM LISPRO", content=content, ruleset=self.rules)
        self.assertEqual(r.title, "Boala cronică de rinichi în stadiul avansat")
        self.assertEqual((r.status, r.source), (TitleStatus.CORRECTED, "content_description"))

    def test_corrupted_known_title_is_skipped(self) -> None:
        rules = dataclasses.replace(self.rules, known_titles={"Z905A": "): DCI"})
        r = resolve_title(code="Z905A", title="AB", dci="INSULINUM LISPRO", content="", ruleset=rules)
        self.assertEqual((r.title, r.source), ("INSULINUM LISPRO", "dci"))


class TestTitleHint(unittest.TestCase):
    def test_full_header_hint_is_reduced_to_the_name(self) -> None:
        hint = "Protocol terapeutic corespunzător poziţiei nr. 7 cod (A008E): IMIGLUCERASUM NU C2-P6.3"
        self.assertEqual(clean_title_hint(hint), "IMIGLUCERASUM")

    def test_empty_or_short_hints(self) -> None:
        self.assertIsNone(clean_title_hint(None))
        self.assertIsNone(clean_title_hint(""))
        self.assertIsNone(clean_title_hint("ab"))
        self.assertEqual(clean_title_hint("  DCI: ORLISTATUM "), "ORLISTATUM")


class TestDrugNames(unittest.TestCase):
    def setUp(self) -> None:
        self.canon = DrugNameCanonicalizer.from_ruleset(default_ruleset())

    def test_expansion_follows_the_case_of_the_match(self) -> None:
        self.assertEqual(self.canon.expand("LISPRO"), "INSULINUM LISPRO")
        self.assertEqual(self.canon.expand("Lispro"), "Insulinum lispro")
        self.assertEqual(self.canon.expand("lispro 100 UI/ml"), "insulinum lispro 100 UI/ml")

    def test_expansion_is_idempotent(self) -> None:
        for text in ("LISPRO", "INSULINUM LISPRO", "Tratament cu ASPART şi DETEMIR"):
            once = self.canon.expand(text)
            self.assertEqual(self.canon.expand(once), once)
        self.assertEqual(self.canon.expand("INSULINUM LISPRO"), "INSULINUM LISPRO")

    def test_variant_spellings_and_longest_match(self) -> None:
        self.assertEqual(self.canon.expand("GLULIZINA"), "INSULINUM GLULISINUM")
        self.assertEqual(self.canon.expand("DEGLUDECUM"), "INSULINUM DEGLUDECUM")
        self.assertEqual(self.canon.expand("DEGLUDEC"), "INSULINUM DEGLUDECUM")

    def test_whole_words_only(self) -> None:
        self.assertEqual(self.canon.expand("ASPARTAM"), "ASPARTAM")

    def test_has_short_drug_names(self) -> None:
        self.assertTrue(self.canon.has_short_drug_names("LISPRO"))
        self.assertFalse(self.canon.has_short_drug_names("INSULINUM LISPRO"))
        self.assertFalse(self.canon.has_short_drug_names(None))

    def test_empty_expansion_table_is_a_no_op(self) -> None:
        rules = dataclasses.replace(default_ruleset(), drug_name_expansions={})
        canon = DrugNameCanonicalizer.from_ruleset(rules)
        self.assertEqual(canon.expand("LISPRO"), "LISPRO")
        self.assertIsNone(canon.expand(None))


if __name__ == "__main__":
    unittest.main()
