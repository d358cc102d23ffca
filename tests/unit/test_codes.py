"""Test property/block code and unit number formatting."""

import pytest

from estate_aggregate.core.codes import (
    format_unit_number,
    generate_block_code,
    generate_property_code,
)


class TestPropertyCode:
    def test_default_format(self):
        assert generate_property_code(2026, 1) == "PROP-2026-0001"

    def test_sequence_wider_than_padding(self):
        assert generate_property_code(2026, 12345) == "PROP-2026-12345"

    def test_custom_prefix_and_width(self):
        assert generate_property_code(2025, 7, prefix="EST", width=3) == "EST-2025-007"

    def test_negative_sequence_rejected(self):
        with pytest.raises(ValueError):
            generate_property_code(2026, -1)


class TestBlockCode:
    def test_scoped_to_property_code(self):
        assert generate_block_code("PROP-2026-0001", 3) == "PROP-2026-0001-B03"


class TestUnitNumber:
    @pytest.mark.parametrize(
        "prefix, number, expected",
        [("A", 1, "A01"), ("A", 10, "A10"), ("", 5, "05"), ("G-", 123, "G-123")],
    )
    def test_padding(self, prefix, number, expected):
        assert format_unit_number(prefix, number) == expected

    def test_custom_width(self):
        assert format_unit_number("U", 7, width=3) == "U007"
