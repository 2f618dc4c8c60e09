"""
Unit tests for order line pricing.
"""

import copy
import pytest
from decimal import Decimal

from bookstore.services.pricing_service import (
    to_decimal, resolve_base_price, resolve_quantity, resolve_unit_price,
    resolve_subtotal, compute_order_total, resolve_display_base_price,
    round_money, format_money, price_line, price_order
)


class TestToDecimal:
    """Tests for coercing JSON values to Decimal."""

    @pytest.mark.parametrize('value, expected', [
        (12, Decimal('12')),
        (12.5, Decimal('12.5')),
        ('7.25', Decimal('7.25')),
        (' 3 ', Decimal('3')),
        (Decimal('1.10'), Decimal('1.10')),
    ])
    def test_valid_values(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize('value', [None, '', '   ', 'abc', True, False, float('nan'), float('inf'), 'NaN', {}])
    def test_invalid_values_return_none(self, value):
        assert to_decimal(value) is None


class TestUnitPrice:
    """Tests for unit price resolution."""

    def test_committed_unit_price_wins_over_condition(self):
        """A committed unitPrice is used verbatim even for USED books."""
        item = {'unitPrice': 33.33, 'price': 100, 'conditionType': 'USED'}
        assert resolve_unit_price(item) == Decimal('33.33')

    def test_committed_unit_price_wins_for_new(self):
        item = {'unitPrice': '80', 'price': 100, 'conditionType': 'NEW'}
        assert resolve_unit_price(item) == Decimal('80')

    def test_committed_zero_is_trusted(self):
        item = {'unitPrice': 0, 'price': 100}
        assert resolve_unit_price(item) == Decimal('0')

    def test_used_book_is_half_price(self):
        assert resolve_unit_price({'price': 100, 'conditionType': 'USED'}) == Decimal('50')

    def test_new_book_is_full_price(self):
        assert resolve_unit_price({'price': 75, 'conditionType': 'NEW'}) == Decimal('75')

    def test_missing_condition_reads_as_new(self):
        assert resolve_unit_price({'price': 75}) == Decimal('75')

    def test_condition_aliases(self):
        assert resolve_unit_price({'price': 10, 'condition': 'USED'}) == Decimal('5')
        assert resolve_unit_price({'price': 10, 'bookCondition': 'used'}) == Decimal('5')

    def test_condition_type_takes_precedence_over_aliases(self):
        item = {'price': 10, 'conditionType': 'NEW', 'condition': 'USED'}
        assert resolve_unit_price(item) == Decimal('10')

    def test_book_price_alias(self):
        assert resolve_unit_price({'bookPrice': 30, 'conditionType': 'USED'}) == Decimal('15')

    def test_price_takes_precedence_over_book_price(self):
        assert resolve_base_price({'price': 20, 'bookPrice': 99}) == Decimal('20')

    def test_invalid_committed_value_falls_back_to_derivation(self):
        item = {'unitPrice': 'n/a', 'price': 40, 'conditionType': 'USED'}
        assert resolve_unit_price(item) == Decimal('20')

    def test_no_price_at_all_is_zero(self):
        assert resolve_unit_price({}) == Decimal('0')
        assert resolve_unit_price({'price': 'garbage'}) == Decimal('0')


class TestQuantityAndSubtotal:
    """Tests for quantity floor and subtotal resolution."""

    @pytest.mark.parametrize('quantity', [0, -3, None, 'x', ''])
    def test_quantity_floor_is_one(self, quantity):
        assert resolve_quantity({'quantity': quantity}) == Decimal('1')

    def test_quantity_kept_when_positive(self):
        assert resolve_quantity({'quantity': 4}) == Decimal('4')

    def test_zero_quantity_prices_as_one(self):
        assert resolve_subtotal({'price': 12, 'quantity': 0}) == Decimal('12')

    def test_committed_subtotal_wins(self):
        item = {'subtotal': 99, 'unitPrice': 10, 'quantity': 3}
        assert resolve_subtotal(item) == Decimal('99')

    def test_subtotal_uses_committed_unit_price(self):
        item = {'unitPrice': 10, 'price': 100, 'quantity': 3}
        assert resolve_subtotal(item) == Decimal('30')

    def test_derived_subtotal(self):
        item = {'price': 40, 'conditionType': 'USED', 'quantity': 3}
        assert resolve_unit_price(item) == Decimal('20')
        assert resolve_subtotal(item) == Decimal('60')


class TestOrderTotal:
    """Tests for order total aggregation."""

    def test_empty_order_is_zero(self):
        assert compute_order_total([]) == Decimal('0')
        assert compute_order_total(None) == Decimal('0')

    def test_total_is_sum_of_resolved_subtotals(self):
        items = [
            {'subtotal': 15},
            {'unitPrice': 10, 'quantity': 2},
            {'price': 40, 'conditionType': 'USED', 'quantity': 3},
            {'price': 5, 'quantity': -1},
        ]
        expected = sum((resolve_subtotal(i) for i in items), Decimal('0'))
        assert compute_order_total(items) == expected == Decimal('100')

    def test_total_is_not_rounded(self):
        items = [{'unitPrice': '0.333'}, {'unitPrice': '0.333'}]
        assert compute_order_total(items) == Decimal('0.666')


class TestDisplayBasePrice:
    """Tests for the struck-through original price of USED lines."""

    def test_used_with_committed_price_doubles_it(self):
        item = {'unitPrice': 30, 'price': 100, 'conditionType': 'USED'}
        assert resolve_display_base_price(item) == Decimal('60')

    def test_used_without_committed_price_shows_base(self):
        item = {'price': 100, 'conditionType': 'USED'}
        assert resolve_display_base_price(item) == Decimal('100')

    def test_new_shows_base(self):
        item = {'unitPrice': 30, 'price': 100}
        assert resolve_display_base_price(item) == Decimal('100')


class TestFormatting:
    """Tests for money rounding and formatting."""

    @pytest.mark.parametrize('value, expected', [
        (Decimal('12.3'), '$12.30'),
        (Decimal('0.125'), '$0.13'),
        (Decimal('2.675'), '$2.68'),
        (60, '$60.00'),
        (None, '$0.00'),
        ('junk', '$0.00'),
    ])
    def test_format_money(self, value, expected):
        assert format_money(value) == expected

    def test_custom_symbol(self):
        assert format_money(Decimal('5'), symbol='€') == '€5.00'

    def test_round_money_half_up(self):
        assert round_money(Decimal('0.005')) == Decimal('0.01')


class TestPriceLine:
    """Tests for the priced view of a line and an order."""

    def test_used_line(self):
        line = price_line({'id': 1, 'bookId': 9, 'bookTitle': 'Math 5', 'price': 40,
                           'conditionType': 'USED', 'quantity': 3})

        assert line['title'] == 'Math 5'
        assert line['author'] == '-'
        assert line['condition'] == 'USED'
        assert line['is_used'] is True
        assert line['unit_price_display'] == '$20.00'
        assert line['subtotal_display'] == '$60.00'
        assert line['display_base_price_display'] == '$40.00'
        assert line['discount_label'] == '(50% off)'

    def test_new_line_has_no_discount(self):
        line = price_line({'id': 2, 'title': 'Atlas', 'price': 10})

        assert line['is_used'] is False
        assert line['display_base_price'] is None
        assert line['discount_label'] is None

    def test_price_order(self):
        priced = price_order([{'price': 40, 'conditionType': 'USED', 'quantity': 3}])

        assert priced['items_count'] == 1
        assert priced['total'] == Decimal('60')
        assert priced['total_display'] == '$60.00'

    def test_quantity_is_a_whole_number(self):
        line = price_line({'price': 10, 'quantity': '3'})

        assert line['quantity'] == 3
        assert isinstance(line['quantity'], int)
        assert price_line({'price': 10, 'quantity': 0})['quantity'] == 1


class TestRepeatability:
    """Pricing reads its input and nothing else."""

    def test_repeat_calls_match_and_leave_input_untouched(self):
        items = [
            {'unitPrice': '12.5', 'price': 40, 'conditionType': 'USED', 'quantity': 2},
            {'price': 40, 'conditionType': 'USED', 'quantity': 3},
            {'subtotal': 7, 'quantity': -1},
            {'bookPrice': 'junk', 'condition': 'new'},
        ]
        snapshot = copy.deepcopy(items)

        for item in items:
            assert resolve_unit_price(item) == resolve_unit_price(item)
            assert resolve_subtotal(item) == resolve_subtotal(item)
        assert compute_order_total(items) == compute_order_total(items)
        price_order(items)

        assert items == snapshot
