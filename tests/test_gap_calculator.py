"""Tests for gap detection."""

import pytest

from sheetnest.nesting.gap_calculator import Gap, GapCalculator, GapFit, find_gaps
from sheetnest.nesting.rectangle import Rectangle
from sheetnest.nesting.sheet import Sheet


def placed(width, height, x, y, rotation=0):
    board = Rectangle.from_size(width, height)
    board.place_at(x, y, rotation)
    return board


@pytest.fixture
def calculator():
    return GapCalculator()


@pytest.fixture
def sheet_with_board():
    """Full-size sheet with a 600x400 board at (100, 100)."""
    sheet = Sheet()
    sheet.add_board(placed(600, 400, 100, 100))
    return sheet


class TestGap:
    """Tests for the Gap value object."""

    def test_create_rounds(self):
        """Test values are rounded to two decimals."""
        gap = Gap.create(10.456, 20.001, 100.333, 200.666)

        assert gap.x == 10.46
        assert gap.y == 20.0
        assert gap.width == 100.33
        assert gap.height == 200.67
        assert gap.area == pytest.approx(20133.42)

    def test_fits(self):
        gap = Gap.create(0, 0, 500, 300)

        assert gap.fits(500, 300) is True
        assert gap.fits(501, 300) is False

    def test_contains(self):
        outer = Gap.create(0, 0, 500, 500)
        inner = Gap.create(100, 100, 100, 100)

        assert outer.contains(inner) is True
        assert inner.contains(outer) is False
        assert outer.contains(outer) is True

    def test_to_dict(self):
        d = Gap.create(1, 2, 3, 4).to_dict()

        assert d == {"x": 1, "y": 2, "width": 3, "height": 4, "area": 12}


class TestFindGaps:
    """Tests for gap enumeration."""

    def test_defaults(self, calculator):
        """Test default settings."""
        assert calculator.min_gap_size == 100.0
        assert calculator.min_spacing == 5.0
        assert calculator.allow_rotation is True

    def test_empty_sheet(self, calculator):
        """Test an empty sheet is a single full-sheet gap."""
        gaps = calculator.find_gaps(Sheet())

        assert gaps == [Gap(x=0, y=0, width=2440, height=1220, area=2976800)]

    def test_no_sheet(self, calculator):
        assert calculator.find_gaps(None) == []

    def test_single_board(self, calculator, sheet_with_board):
        """Test gaps around one board."""
        gaps = calculator.find_gaps(sheet_with_board)

        assert [(g.x, g.y, g.width, g.height) for g in gaps] == [
            (705, 100, 1735, 1120),
            (100, 505, 2340, 715),
            (0, 1120, 2440, 100),
            (2340, 0, 100, 1220),
        ]

    def test_sorted_by_area(self, calculator, sheet_with_board):
        areas = [g.area for g in calculator.find_gaps(sheet_with_board)]

        assert areas == sorted(areas, reverse=True)

    def test_gaps_respect_padding(self, calculator, sheet_with_board):
        """Test no gap reaches into the padded board footprint."""
        for gap in calculator.find_gaps(sheet_with_board):
            overlaps = (
                gap.x < 705 and gap.x + gap.width > 95 and
                gap.y < 505 and gap.y + gap.height > 95
            )
            assert not overlaps, gap

    def test_min_gap_size(self, calculator, sheet_with_board):
        for gap in calculator.find_gaps(sheet_with_board):
            assert gap.width >= 100
            assert gap.height >= 100

    def test_larger_min_gap_size(self, sheet_with_board):
        """Test corner probes move inward with a larger minimum."""
        gaps = GapCalculator(min_gap_size=200).find_gaps(sheet_with_board)

        assert [(g.x, g.y, g.width, g.height) for g in gaps] == [
            (705, 100, 1735, 1120),
            (100, 505, 2340, 715),
            (0, 1020, 2440, 200),
            (2240, 0, 200, 1220),
        ]

    def test_board_at_origin(self, calculator):
        """Test a corner inside a board does not produce a gap."""
        sheet = Sheet()
        sheet.add_board(placed(300, 200, 0, 0))

        gaps = calculator.find_gaps(sheet)

        assert [(g.x, g.y, g.width, g.height) for g in gaps] == [
            (305, 0, 2135, 1220),
            (0, 205, 2440, 1015),
        ]

    def test_rotated_board(self, calculator):
        """Test gaps use the rotated footprint."""
        sheet = Sheet()
        sheet.add_board(placed(600, 400, 0, 0, rotation=90))

        gaps = calculator.find_gaps(sheet)

        assert (gaps[0].x, gaps[0].y) == (405, 0)
        assert (gaps[1].x, gaps[1].y) == (0, 605)

    def test_zero_spacing(self):
        """Test a board's own corner is not a gap origin without spacing."""
        sheet = Sheet(width=1000, height=600)
        sheet.add_board(placed(500, 600, 0, 0))

        gaps = GapCalculator(min_spacing=0).find_gaps(sheet)

        assert [(g.x, g.y, g.width, g.height) for g in gaps] == [(500, 0, 500, 600)]

    def test_unpositioned_boards_ignored(self, calculator):
        sheet = Sheet()
        sheet.add_board(Rectangle.from_size(600, 400))

        gaps = calculator.find_gaps(sheet)

        assert len(gaps) == 1
        assert gaps[0].area == 2976800

    def test_remove_contained(self, calculator):
        """Test duplicates and contained rectangles are dropped."""
        rects = [(0, 0, 10, 10), (0, 0, 10, 10), (0, 0, 5, 5), (20, 0, 5, 5)]

        assert calculator._remove_contained(rects) == [(0, 0, 10, 10), (20, 0, 5, 5)]

    def test_module_function(self, sheet_with_board):
        gaps = find_gaps(sheet_with_board, min_spacing=20)

        assert gaps[0].x == 720


class TestBoardFitting:
    """Tests for finding gaps for boards."""

    def test_find_gap_for_board(self, calculator, sheet_with_board):
        gap = calculator.find_gap_for_board(Rectangle.from_size(500, 300), sheet_with_board)

        assert (gap.x, gap.y) == (705, 100)

    def test_required_size(self, calculator):
        board = Rectangle.from_size(500, 300)

        assert calculator.required_size(board, 0) == (510, 310)
        assert calculator.required_size(board, 90) == (310, 510)

    def test_long_board_needs_wide_gap(self, calculator, sheet_with_board):
        """Test a long board skips the narrower first gap."""
        board = Rectangle.from_size(1800, 200)

        gap = calculator.find_gap_for_board(board, sheet_with_board, rotation=0)
        assert (gap.x, gap.y) == (100, 505)

        assert calculator.find_gap_for_board(board, sheet_with_board, rotation=90) is None

    def test_no_fit(self, calculator):
        assert calculator.find_gap_for_board(Rectangle.from_size(3000, 100), Sheet()) is None

    def test_find_best_gap(self, calculator, sheet_with_board):
        fit = calculator.find_best_gap(Rectangle.from_size(500, 300), sheet_with_board)

        assert isinstance(fit, GapFit)
        assert fit.rotation == 0
        assert (fit.gap.x, fit.gap.y) == (705, 100)
        assert fit.wasted_area == pytest.approx(1943200 - 150000)

    def test_find_best_gap_needs_rotation(self, calculator):
        """Test the best gap may need a quarter turn."""
        sheet = Sheet(width=1000, height=500)
        fit = calculator.find_best_gap(Rectangle.from_size(400, 800), sheet)

        assert fit.rotation == 90

    def test_find_best_gap_without_rotation(self, calculator):
        sheet = Sheet(width=1000, height=500)

        assert calculator.find_best_gap(Rectangle.from_size(400, 800), sheet, try_rotations=False) is None


class TestGapValidation:
    """Tests for gap validation."""

    def test_valid_gap(self, calculator, sheet_with_board):
        gap = calculator.find_gaps(sheet_with_board)[0]

        assert calculator.gap_is_valid(gap, sheet_with_board) is True

    def test_gap_over_board(self, calculator, sheet_with_board):
        assert calculator.gap_is_valid(Gap.create(0, 0, 2440, 1220), sheet_with_board) is False

    def test_gap_too_small(self, calculator):
        assert calculator.gap_is_valid(Gap.create(0, 0, 50, 50), Sheet()) is False

    def test_gap_outside_sheet(self, calculator):
        assert calculator.gap_is_valid(Gap.create(2000, 0, 500, 500), Sheet()) is False

    def test_missing_inputs(self, calculator):
        assert calculator.gap_is_valid(None, Sheet()) is False
        assert calculator.gap_is_valid(Gap.create(0, 0, 500, 500), None) is False
