"""
Tests for the Table facade: column/row mutation, widening, clear, iteration.
"""
import decimal
import random
import threading

import pytest
import tvp
from tvp import Column, SqlType, Table, TableOptions
from tvp.exceptions import DuplicateColumnNameError, FeatureNotSupportedError
from tvp.exceptions import InvalidValueError, TooManyValuesError
from tvp.exceptions import UnsupportedTypeError


def rows_of(table):
    return [row for _, row in table.get_iterator()]


class TestScenarios:

    def test_integer_row(self, empty_table):
        empty_table.add_column_metadata('id', SqlType.INTEGER)
        assert empty_table.add_row([5]) == 0
        assert rows_of(empty_table) == [(5,)]
        column = empty_table.get_column_metadata()[0]
        assert (column.precision, column.scale) == (0, 0)

    def test_decimal_widens_and_never_shrinks(self, empty_table):
        empty_table.add_column_metadata('amt', SqlType.DECIMAL)

        empty_table.add_row(['12.345'])
        column = empty_table.get_column_metadata()[0]
        assert rows_of(empty_table)[0][0] == decimal.Decimal('12.345')
        assert (column.precision, column.scale) == (5, 3)

        empty_table.add_row(['1.2'])
        assert rows_of(empty_table)[1][0] == decimal.Decimal('1.2')
        assert (column.precision, column.scale) == (5, 3)

    def test_duplicate_column_name(self, empty_table):
        empty_table.add_column_metadata('Name', SqlType.VARCHAR)
        with pytest.raises(DuplicateColumnNameError):
            empty_table.add_column_metadata('name', SqlType.VARCHAR)
        assert empty_table.column_count == 1

    def test_too_many_values(self, empty_table):
        empty_table.add_column_metadata('a', SqlType.INTEGER)
        empty_table.add_column_metadata('b', SqlType.INTEGER)
        with pytest.raises(TooManyValuesError) as exc_info:
            empty_table.add_row([1, 2, 3])
        assert exc_info.value.value_count == 3
        assert exc_info.value.column_count == 2
        assert empty_table.row_count == 0
        assert empty_table.column_count == 2

    def test_varbinary_width(self, empty_table):
        empty_table.add_column_metadata('blob', SqlType.VARBINARY)
        empty_table.add_row([bytes(10)])
        column = empty_table.get_column_metadata()[0]
        assert column.precision == 10
        empty_table.add_row([bytes(3)])
        assert column.precision == 10

    def test_clear(self, empty_table):
        for name in ('a', 'b', 'c'):
            empty_table.add_column_metadata(name, SqlType.INTEGER)
        for i in range(5):
            empty_table.add_row([i, i, i])

        empty_table.clear()

        assert empty_table.get_column_metadata() == []
        assert list(empty_table.get_iterator()) == []
        assert empty_table.add_column_metadata('x', SqlType.INTEGER) == 0
        assert empty_table.add_row([1]) == 0


class TestRows:

    def test_short_rows_are_padded(self, order_table):
        order_table.add_row([1])
        assert rows_of(order_table) == [(1, None, None, None)]

    def test_none_and_empty_rows(self, order_table):
        order_table.add_row()
        order_table.add_row([])
        assert rows_of(order_table) == [(None,) * 4, (None,) * 4]

    def test_row_indexes_are_dense(self, order_table):
        indexes = [order_table.add_row([i]) for i in range(4)]
        assert indexes == [0, 1, 2, 3]
        assert [index for index, _ in order_table.get_iterator()] == [0, 1, 2, 3]
        assert len(order_table) == 4

    def test_full_row(self, order_table):
        order_table.add_row(['7', 'widget', decimal.Decimal('9.99'), b'\x00\x01'])
        assert rows_of(order_table) == [(7, 'widget', decimal.Decimal('9.99'), b'\x00\x01')]
        widths = [(c.name, c.precision, c.scale) for c in order_table.get_column_metadata()]
        assert widths == [('id', 0, 0), ('name', 12, 0), ('amount', 3, 2), ('payload', 2, 0)]

    def test_tuple_and_generator_values(self, order_table):
        order_table.add_row((1, 'a'))
        order_table.add_row(v for v in (2, 'b'))
        assert [row[:2] for row in rows_of(order_table)] == [(1, 'a'), (2, 'b')]

    def test_single_string_is_not_a_row(self, order_table):
        with pytest.raises(TypeError):
            order_table.add_row('abc')
        assert order_table.row_count == 0

    def test_add_rows(self, order_table):
        assert order_table.add_rows([[1, 'a'], [2, 'b'], [3]]) == [0, 1, 2]
        assert order_table.row_count == 3

    def test_add_rows_stops_at_failure(self, order_table):
        with pytest.raises(InvalidValueError):
            order_table.add_rows([[1], ['x'], [3]])
        assert rows_of(order_table) == [(1, None, None, None)]

    def test_columns_added_after_rows(self, empty_table):
        empty_table.add_column_metadata('a', SqlType.INTEGER)
        empty_table.add_row([1])
        empty_table.add_column_metadata('b', SqlType.INTEGER)
        empty_table.add_row([2, 3])
        assert rows_of(empty_table) == [(1,), (2, 3)]

    def test_zero_column_table(self, empty_table):
        assert empty_table.add_row([]) == 0
        with pytest.raises(TooManyValuesError):
            empty_table.add_row([1])
        assert rows_of(empty_table) == [()]


class TestFailedRows:

    def test_invalid_value_appends_nothing(self, order_table):
        with pytest.raises(InvalidValueError):
            order_table.add_row(['not-a-number'])
        assert order_table.row_count == 0

    def test_widening_is_rolled_back(self, order_table):
        """Earlier columns of a rejected row keep their previous width"""
        order_table.add_row([1, 'ab', '1.5', b'x'])
        with pytest.raises(InvalidValueError):
            order_table.add_row([2, 'a much longer name', '12345.6789', 'not bytes'])

        widths = {c.name: (c.precision, c.scale) for c in order_table.get_column_metadata()}
        assert widths == {'id': (0, 0), 'name': (4, 0), 'amount': (2, 1), 'payload': (1, 0)}
        assert order_table.row_count == 1

    def test_unsupported_column_type(self, empty_table):
        empty_table.add_column_metadata('a', SqlType.INTEGER)
        empty_table.add_column_metadata('doc', SqlType.CLOB)
        for values in ([1], [1, 'text'], [1, None], [1, b'x']):
            with pytest.raises(UnsupportedTypeError) as exc_info:
                empty_table.add_row(values)
            assert exc_info.value.sql_type is SqlType.CLOB
        assert empty_table.row_count == 0

    def test_timezone_column_without_support(self, empty_table):
        empty_table.add_column_metadata('ts', SqlType.TIMESTAMP_WITH_TIMEZONE)
        with pytest.raises(FeatureNotSupportedError):
            empty_table.add_row(['2023-05-15T14:30:45+00:00'])

    def test_timezone_column_with_support(self, extended_table, value_dict):
        extended_table.add_column_metadata('ts', SqlType.TIMESTAMP_WITH_TIMEZONE)
        extended_table.add_row([value_dict['datetimeoffset_value']])
        assert rows_of(extended_table) == [('2023-05-15T14:30:45+00:00',)]


class TestProperties:

    def test_duplicate_names_never_change_count(self):
        table = Table()
        names = ['a', 'A', 'b', 'B', 'a', 'c', 'C']
        for name in names:
            try:
                table.add_column_metadata(name, SqlType.INTEGER)
            except DuplicateColumnNameError:
                pass
        assert [c.name for c in table.get_column_metadata()] == ['a', 'b', 'c']

    def test_decimal_widening_tracks_maxima(self):
        rng = random.Random(1234)
        table = Table()
        table.add_column_metadata('d', SqlType.DECIMAL)
        max_precision = max_scale = 0
        for _ in range(50):
            whole = rng.randint(1, 10 ** rng.randint(1, 12))
            scale = rng.randint(0, 6)
            value = decimal.Decimal(whole).scaleb(-scale)
            precision_, scale_ = tvp.coercion.decimal_width(value)
            max_precision = max(max_precision, precision_)
            max_scale = max(max_scale, scale_)
            table.add_row([str(value)])
        column = table.get_column_metadata()[0]
        assert (column.precision, column.scale) == (max_precision, max_scale)

    def test_text_and_binary_widening_tracks_maxima(self):
        rng = random.Random(42)
        table = Table()
        table.add_column_metadata('s', SqlType.NVARCHAR)
        table.add_column_metadata('b', SqlType.VARBINARY)
        lengths = [rng.randint(0, 40) for _ in range(30)]
        for n in lengths:
            table.add_row(['x' * n, bytes(n)])
        text_col, binary_col = table.get_column_metadata()
        assert text_col.precision == 2 * max(lengths)
        assert binary_col.precision == max(lengths)

    def test_null_values_do_not_widen(self, empty_table):
        empty_table.add_column_metadata('s', SqlType.VARCHAR)
        empty_table.add_row([None])
        assert empty_table.get_column_metadata()[0].precision == 0

    def test_shared_column_widens_per_table(self):
        shared = Column('b', SqlType.VARBINARY)
        first, second = Table(), Table()
        first.add_column_metadata(shared)
        second.add_column_metadata(shared)

        first.add_row([bytes(50)])
        second.add_row([bytes(3)])

        assert first.get_column_metadata()[0].precision == 50
        assert second.get_column_metadata()[0].precision == 3
        assert shared.precision == 0

    def test_readded_column_starts_from_declared_width(self, empty_table):
        column = Column('s', SqlType.NVARCHAR)
        empty_table.add_column_metadata(column)
        empty_table.add_row(['x' * 20])
        empty_table.clear()
        empty_table.add_column_metadata(column)
        empty_table.add_row(['x'])
        assert empty_table.get_column_metadata()[0].precision == 2

    def test_nan_text_and_float_both_null(self, empty_table):
        empty_table.add_column_metadata('d', SqlType.DOUBLE)
        empty_table.add_row([float('nan')])
        empty_table.add_row(['NaN'])
        assert rows_of(empty_table) == [(None,), (None,)]

    def test_initial_width_is_kept(self, empty_table):
        empty_table.add_column_metadata(Column('amount', SqlType.DECIMAL, precision=18, scale=4))
        empty_table.add_row(['1.5'])
        column = empty_table.get_column_metadata()[0]
        assert (column.precision, column.scale) == (18, 4)


class TestIteration:

    def test_iterator_is_live(self, order_table):
        order_table.add_row([1])
        iterator = order_table.get_iterator()
        order_table.add_row([2])
        assert [row[0] for _, row in iterator] == [1, 2]

    def test_metadata_is_ordered(self, order_table):
        assert [c.name for c in order_table.get_column_metadata()] == \
            ['id', 'name', 'amount', 'payload']


class TestConcurrency:

    def test_concurrent_add_row_keeps_indexes_dense(self):
        table = Table()
        table.add_column_metadata('worker', SqlType.INTEGER)
        table.add_column_metadata('text', SqlType.NVARCHAR)

        def work(worker):
            for i in range(200):
                table.add_row([worker, 'x' * (i % 17)])

        threads = [threading.Thread(target=work, args=(w,)) for w in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        indexes = [index for index, _ in table.get_iterator()]
        assert indexes == list(range(1600))
        assert all(len(row) == 2 for _, row in table.get_iterator())
        assert table.get_column_metadata()[1].precision == 32

    def test_concurrent_clear_and_add_row(self):
        """Rows are either fully present or absent, always matching the column count"""
        table = Table()
        stop = threading.Event()

        def writer():
            while not stop.is_set():
                with table._lock:
                    if table.column_count == 0:
                        table.add_column_metadata('a', SqlType.INTEGER)
                        table.add_column_metadata('b', SqlType.INTEGER)
                    table.add_row([1, 2])

        def clearer():
            for _ in range(50):
                table.clear()

        thread = threading.Thread(target=writer)
        thread.start()
        clearer()
        stop.set()
        thread.join()

        for _, row in table.get_iterator():
            assert row == (1, 2)


class TestOptions:

    def test_default_options(self):
        table = Table()
        assert table.options.extended_temporal is False
        assert table.type_name is None

    def test_type_name(self, order_table):
        assert order_table.type_name == 'dbo.OrderLineType'
        assert 'dbo.OrderLineType' in repr(order_table)

    def test_new_table_from_options(self):
        table = tvp.new_table(TableOptions(extended_temporal=True))
        assert isinstance(table, Table)
        assert table.options.extended_temporal is True

    def test_new_table_from_dict(self):
        table = tvp.new_table({'extended_temporal': True, 'type_name': 'dbo.T'})
        assert table.options.extended_temporal is True
        assert table.type_name == 'dbo.T'

    def test_new_table_from_config(self):
        import config
        table = tvp.new_table('staged', config=config)
        assert table.options.extended_temporal is True
        assert table.type_name == 'dbo.OrderLineType'


def test_module_functions():
    table = Table()
    assert tvp.add_column(table, 'id', 'int') == 0
    assert tvp.add_row(table, ['1']) == 0
    assert tvp.add_rows(table, [[2], [3]]) == [1, 2]
    assert rows_of(table) == [(1,), (2,), (3,)]


if __name__ == '__main__':
    __import__('pytest').main([__file__])
