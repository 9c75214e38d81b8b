import pytest

from sortable.order_key import Comparison, OrderKey, compare, next_after


class TestOrderKey:
    def test_compare(self):
        assert compare(1, 2) == Comparison.LESS
        assert compare(2, 2) == Comparison.EQUAL
        assert compare(3, 2) == Comparison.GREATER

    def test_compare_accepts_keys(self):
        assert compare(OrderKey(4), 5) == Comparison.LESS
        assert compare(OrderKey(5), OrderKey(5)) == Comparison.EQUAL

    def test_next_after(self):
        assert next_after(0) == 1
        assert next_after(OrderKey(7)) == 8
        assert OrderKey(7).next() == OrderKey(8)

    def test_keys_are_ordered_values(self):
        keys = [OrderKey(3), OrderKey(1), OrderKey(2)]
        assert sorted(keys) == [OrderKey(1), OrderKey(2), OrderKey(3)]
        assert {OrderKey(1), OrderKey(1)} == {OrderKey(1)}
        assert int(OrderKey(9)) == 9

    def test_negative_rank_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            OrderKey(-1)
