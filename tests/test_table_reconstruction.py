from __future__ import annotations

import json
import unittest

from contracts.layout import LayoutDocument, LayoutPage, PositionedTextItem
from tables.config import TableConfig
from tables.reconstruct import detect_columns, reconstruct_tables, reconstruct_tables_for_page


def _item(text: str, x: float, y: float, *, page_num: int = 1, width: float = 40.0, height: float = 10.0):
    return PositionedTextItem(text=text, page_num=page_num, x=x, y=y, width=width, height=height)


def _page(items: list[PositionedTextItem], page_num: int = 1) -> LayoutPage:
    return LayoutPage(page_num=page_num, width=600.0, height=800.0, text="", items=items)


def _summary_items() -> list[PositionedTextItem]:
    return [
        _item("A001E", 50, 100),
        _item("ORLISTATUM", 150, 100, width=90),
        _item("A002C", 50, 120),
        _item("PALONOSETRONUM", 155, 121, width=110),
        _item("A005E", 52, 140),
        _item("PARICALCITOLUM", 160, 140, width=110),
    ]


class TestColumnDetection(unittest.TestCase):
    def test_two_columns_from_clustered_x(self) -> None:
        cols = detect_columns(_summary_items(), TableConfig())
        self.assertEqual([c.index for c in cols], [0, 1])
        self.assertEqual(cols[0].x, 50)
        self.assertEqual(cols[0].width, 50.0)  # min width floor
        self.assertEqual(cols[1].x, 150)

    def test_sparse_positions_fall_back_to_one_full_width_column(self) -> None:
        items = [_item("A001E", 50, 100), _item("ORLISTATUM", 300, 100, width=90)]
        cols = detect_columns(items, TableConfig())
        self.assertEqual(len(cols), 1)
        self.assertEqual(cols[0].x, 50)
        self.assertEqual(cols[0].width, 340.0)

    def test_min_members_is_configurable(self) -> None:
        items = [_item("A001E", 50, 100), _item("A002C", 50, 120), _item("X", 300, 100)]
        self.assertEqual(len(detect_columns(items, TableConfig(min_column_members=2))), 1)
        self.assertEqual(len(detect_columns(items, TableConfig(min_column_members=1))), 2)


class TestRowsAndCells(unittest.TestCase):
    def test_rows_group_by_y_tolerance_and_cells_by_column(self) -> None:
        tables = reconstruct_tables_for_page(_page(_summary_items()), TableConfig())
        self.assertEqual(len(tables), 1)
        t = tables[0]
        self.assertEqual(t.page_num, 1)
        self.assertEqual(len(t.rows), 3)

        texts = [[c.text for c in r.cells] for r in t.rows]
        self.assertEqual(
            texts,
            [["A001E", "ORLISTATUM"], ["A002C", "PALONOSETRONUM"], ["A005E", "PARICALCITOLUM"]],
        )
        self.assertEqual(t.rows[1].y, 120)
        self.assertEqual([r.row_index for r in t.rows], [0, 1, 2])

    def test_empty_cells_are_kept(self) -> None:
        items = _summary_items() + [_item("A008E", 50, 160)]
        t = reconstruct_tables_for_page(_page(items), TableConfig())[0]
        last = t.rows[-1]
        self.assertEqual([c.text for c in last.cells], ["A008E", ""])
        self.assertEqual(last.cells[1].column_index, 1)

    def test_cell_text_is_joined_left_to_right_with_collapsed_whitespace(self) -> None:
        items = _summary_items() + [
            _item("A010N", 50, 160),
            _item("SUCROZĂ", 200, 161, width=60),
            _item("COMPLEX  DE", 150, 160, width=45),
        ]
        t = reconstruct_tables_for_page(_page(items), TableConfig())[0]
        self.assertEqual(t.rows[-1].cells[1].text, "COMPLEX DE SUCROZĂ")

    def test_page_without_items_yields_no_tables(self) -> None:
        self.assertEqual(reconstruct_tables_for_page(_page([]), TableConfig()), [])
        self.assertEqual(reconstruct_tables_for_page(_page([_item("  ", 10, 10)]), TableConfig()), [])

    def test_vertical_gap_splits_tables_when_enabled(self) -> None:
        items = _summary_items() + [
            _item("B009N", 50, 400),
            _item("EPOETINUM BETA", 150, 400, width=110),
        ]
        whole = reconstruct_tables_for_page(_page(items), TableConfig())
        self.assertEqual(len(whole), 1)

        split = reconstruct_tables_for_page(_page(items), TableConfig(table_gap_px=100.0))
        self.assertEqual(len(split), 2)
        self.assertEqual(len(split[0].rows), 3)
        self.assertEqual(len(split[1].rows), 1)
        self.assertEqual(split[1].rows[0].row_index, 0)
        self.assertEqual(split[1].rows[0].cells[0].row_index, 0)
        self.assertEqual(split[0].columns, split[1].columns)

    def test_invalid_config_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            reconstruct_tables_for_page(_page(_summary_items()), TableConfig(column_tolerance_px=0))


class TestDocumentReconstruction(unittest.TestCase):
    def test_meta_counts_and_determinism(self) -> None:
        doc = LayoutDocument(
            page_count=2,
            pages=[_page(_summary_items(), page_num=1), _page([], page_num=2)],
        )
        tables_a, meta_a = reconstruct_tables(doc, TableConfig())
        tables_b, meta_b = reconstruct_tables(doc, TableConfig())

        self.assertEqual(meta_a["counts"]["page_001"]["rows"], 3)
        self.assertEqual(meta_a["counts"]["page_002"]["tables"], 0)
        self.assertEqual(
            json.dumps([t.to_dict() for t in tables_a], sort_keys=True),
            json.dumps([t.to_dict() for t in tables_b], sort_keys=True),
        )
        self.assertEqual(meta_a, meta_b)


if __name__ == "__main__":
    unittest.main()
