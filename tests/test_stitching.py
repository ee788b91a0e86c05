from __future__ import annotations

import unittest

from contracts.layout import LayoutDocument
from contracts.protocols import Candidate, SourceStrategy, StitchMethod
from protocols.rules import default_ruleset
from protocols.stitching import (
    build_section_index,
    derive_dci_from_section,
    fill_dci_from_content,
    find_sections,
    stitch_candidate,
)

_BODY = [
    "I. Indicaţii terapeutice",
    "Obezitate la adulţi cu indicele de masă corporală peste 30 kg/m2.",
    "II. Criterii de includere în tratament",
    "Pacienţi care nu au răspuns la dietă şi exerciţiu fizic.",
]

_A001E_HEADER = "Protocol terapeutic corespunzător poziţiei nr. 1 cod (A001E): DCI ORLISTATUM"
_B002C_HEADER = "Protocol terapeutic corespunzător poziţiei nr. 2 cod (B002C): DCI"


def _document() -> LayoutDocument:
    return LayoutDocument.from_texts(
        [
            "LISTA PROTOCOALELOR\nA001E ORLISTATUM\nB002C DIABET ZAHARAT",
            "\n".join([_A001E_HEADER] + _BODY),
            "\n".join([_B002C_HEADER, "INSULINUM LISPRO"] + _BODY),
        ]
    )


def _cand(code: str, title: str, confidence: float = 75.0, content: str | None = None) -> Candidate:
    return Candidate(
        code=code,
        title=title,
        content=content if content is not None else f"{code} {title}",
        page_number=1,
        confidence=confidence,
        source_strategy=SourceStrategy.TABLE,
    )


class TestFindSections(unittest.TestCase):
    def setUp(self) -> None:
        self.rules = default_ruleset()

    def test_sections_end_at_the_next_header(self) -> None:
        index = build_section_index(_document(), ruleset=self.rules)
        a = index.sections["A001E"]
        self.assertEqual((a.start_line, a.end_line), (3, 8))
        self.assertFalse(a.window_capped)
        self.assertTrue(a.content.startswith(_A001E_HEADER))
        self.assertNotIn("B002C", a.content)
        self.assertEqual(index.page_span(a.start_line, a.end_line), (2, 2))

        b = index.sections["B002C"]
        self.assertEqual(b.end_line, len(index.lines))
        self.assertFalse(b.window_capped)

    def test_explicit_end_marker_closes_a_section(self) -> None:
        lines = [_A001E_HEADER, "text", "---", "Anexa 2"]
        s = find_sections(lines, ruleset=self.rules)["A001E"]
        self.assertEqual(s.end_line, 2)
        self.assertEqual(s.content, f"{_A001E_HEADER}\ntext")

    def test_first_header_of_a_code_wins(self) -> None:
        lines = [_A001E_HEADER, "prima variantă", _A001E_HEADER, "a doua variantă"]
        s = find_sections(lines, ruleset=self.rules)["A001E"]
        self.assertEqual((s.start_line, s.end_line), (0, 2))

    def test_window_cap_is_reported_only_when_it_truncates(self) -> None:
        header = "Protocol terapeutic corespunzător poziţiei nr. 9 cod (C002I): DCI ALPROSTADILUM"
        long_lines = [header] + [f"rând de text {i}" for i in range(600)]
        s = find_sections(long_lines, ruleset=self.rules, window_lines=500)["C002I"]
        self.assertTrue(s.window_capped)
        self.assertEqual(s.end_line, 500)

        short_lines = [header] + [f"rând de text {i}" for i in range(400)]
        s = find_sections(short_lines, ruleset=self.rules, window_lines=500)["C002I"]
        self.assertFalse(s.window_capped)
        self.assertEqual(s.end_line, 401)


class TestStitchCandidate(unittest.TestCase):
    def setUp(self) -> None:
        self.rules = default_ruleset()
        self.index = build_section_index(_document(), ruleset=self.rules)

    def test_full_section_replaces_content_and_boosts_confidence(self) -> None:
        cand = _cand("A001E", "ORLISTATUM")
        out = stitch_candidate(cand, self.index, ruleset=self.rules)

        self.assertEqual(out.content, self.index.sections["A001E"].content)
        self.assertEqual(out.confidence, 95)
        self.assertEqual(out.dci, "ORLISTATUM")
        self.assertEqual(out.title, "ORLISTATUM")
        self.assertEqual(out.stitch.method, StitchMethod.SECTION)
        self.assertEqual((out.stitch.start_page, out.stitch.end_page), (2, 2))
        self.assertEqual(out.stitch.window_lines, 500)

        adj = out.adjustments[-1]
        self.assertEqual((adj.stage, adj.before, adj.after, adj.reason), ("stitch", 75, 95, "full_section_found"))

    def test_boost_is_capped_but_never_lowers(self) -> None:
        out = stitch_candidate(_cand("A001E", "ORLISTATUM", confidence=105), self.index, ruleset=self.rules)
        self.assertEqual(out.confidence, 105)
        self.assertEqual(out.adjustments, ())
        self.assertEqual(out.stitch.method, StitchMethod.SECTION)

        out = stitch_candidate(_cand("A001E", "ORLISTATUM", confidence=90), self.index, ruleset=self.rules)
        self.assertEqual(out.confidence, 100)

    def test_header_fragment_title_is_replaced_by_derived_dci(self) -> None:
        cand = _cand("B002C", "corespunzător poziţiei nr. 2")
        out = stitch_candidate(cand, self.index, ruleset=self.rules)
        self.assertEqual(out.title, "INSULINUM LISPRO")
        self.assertEqual(out.dci, "INSULINUM LISPRO")
        self.assertEqual(out.code, "B002C")

    def test_content_never_shrinks(self) -> None:
        long_content = "ORLISTATUM " * 100
        cand = _cand("A001E", "ORLISTATUM", content=long_content)
        out = stitch_candidate(cand, self.index, ruleset=self.rules)
        self.assertEqual(out.content, long_content)
        self.assertEqual(out.stitch.method, StitchMethod.NONE)
        self.assertEqual(out.confidence, 75)

    def test_fallback_excerpt_when_no_header_exists(self) -> None:
        doc = LayoutDocument.from_texts(
            [
                "\n".join(
                    [
                        "Anexa",
                        "N001F MEMANTINUM",
                        "Pacienţi cu demenţă Alzheimer moderată până la severă.",
                        "Tratamentul se iniţiază cu 5 mg pe zi.",
                        "N002F ALTCEVA",
                    ]
                )
            ]
        )
        index = build_section_index(doc, ruleset=self.rules)
        out = stitch_candidate(_cand("N001F", "MEMANTINUM", confidence=105), index, ruleset=self.rules)

        self.assertEqual(out.stitch.method, StitchMethod.FALLBACK)
        self.assertEqual((out.stitch.start_line, out.stitch.end_line), (1, 4))
        self.assertFalse(out.stitch.window_capped)
        self.assertIn("Tratamentul se iniţiază", out.content)
        self.assertNotIn("N002F", out.content)
        self.assertEqual(out.confidence, 95)
        self.assertEqual(out.adjustments[-1].reason, "fallback_content")

        floor = stitch_candidate(_cand("N001F", "MEMANTINUM", confidence=45), index, ruleset=self.rules)
        self.assertEqual(floor.confidence, 40)
        low = stitch_candidate(_cand("N001F", "MEMANTINUM", confidence=30), index, ruleset=self.rules)
        self.assertEqual(low.confidence, 30)

    def test_fallback_excerpt_reports_the_line_cap(self) -> None:
        lines = ["N001F MEMANTINUM"] + [f"rând fără trimiteri {i}" for i in range(300)]
        index = build_section_index(LayoutDocument.from_texts(["\n".join(lines)]), ruleset=self.rules)
        out = stitch_candidate(
            _cand("N001F", "MEMANTINUM"), index, ruleset=self.rules, fallback_window_lines=200
        )

        self.assertEqual(out.stitch.method, StitchMethod.FALLBACK)
        self.assertEqual((out.stitch.start_line, out.stitch.end_line), (0, 201))
        self.assertEqual(out.stitch.window_lines, 200)
        self.assertTrue(out.stitch.window_capped)
        self.assertNotIn("rând fără trimiteri 200", out.content)

        exact = ["N001F MEMANTINUM"] + [f"rând fără trimiteri {i}" for i in range(200)]
        index = build_section_index(LayoutDocument.from_texts(["\n".join(exact)]), ruleset=self.rules)
        out = stitch_candidate(
            _cand("N001F", "MEMANTINUM"), index, ruleset=self.rules, fallback_window_lines=200
        )
        self.assertEqual(out.stitch.end_line, 201)
        self.assertFalse(out.stitch.window_capped)

    def test_miss_keeps_candidate_as_is(self) -> None:
        cand = _cand("L004C", "BEVACIZUMABUM")
        out = stitch_candidate(cand, self.index, ruleset=self.rules)
        self.assertEqual(out.stitch.method, StitchMethod.NONE)
        self.assertEqual(out.content, cand.content)
        self.assertEqual(out.confidence, cand.confidence)


class TestDciHelpers(unittest.TestCase):
    def test_dci_on_the_header_line(self) -> None:
        self.assertEqual(derive_dci_from_section(f"{_A001E_HEADER}\ntext"), "ORLISTATUM")

    def test_dci_on_the_line_after_a_bare_label(self) -> None:
        self.assertEqual(derive_dci_from_section(f"{_B002C_HEADER}\nINSULINUM LISPRO\ntext"), "INSULINUM LISPRO")

    def test_dci_label_near_the_top(self) -> None:
        text = "Protocol terapeutic cod (L004C)\nI. Definiţie\nDCI: BEVACIZUMABUM\ntext"
        self.assertEqual(derive_dci_from_section(text), "BEVACIZUMABUM")

    def test_no_dci(self) -> None:
        self.assertIsNone(derive_dci_from_section("Protocol terapeutic cod (L004C)\nfără informaţii"))

    def test_fill_dci_from_content(self) -> None:
        cand = _cand("A001E", "ORLISTATUM", content="A001E ... DCI: ORLISTATUM, 120 mg")
        self.assertEqual(fill_dci_from_content(cand).dci, "ORLISTATUM")

        with_dci = cand.evolve(dci="ORLISTAT")
        self.assertIs(fill_dci_from_content(with_dci), with_dci)


if __name__ == "__main__":
    unittest.main()
