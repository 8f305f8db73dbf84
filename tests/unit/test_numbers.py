# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for numeric helpers."""

import pytest

from classroom.utils.numbers import percentage, round_half_up


class TestRoundHalfUp:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize(
        ("value", "digits", "expected"),
        [
            (62.5, 0, 63.0),
            (2.5, 0, 3.0),
            (74.25, 1, 74.3),
            (74.24, 1, 74.2),
            (75, 1, 75.0),
        ],
    )
    def test_rounds(self, value, digits, expected):
        assert round_half_up(value, digits) == expected


class TestPercentage:
    """Tests for integer percentages."""

    def test_zero_denominator(self):
        assert percentage(0, 0) == 0
        assert percentage(3, 0) == 0

    def test_half_rounds_up(self):
        assert percentage(5, 8) == 63

    def test_whole(self):
        assert percentage(6, 8) == 75
        assert percentage(8, 8) == 100
