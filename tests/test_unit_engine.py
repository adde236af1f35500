import pytest

import unit_engine
from unit_engine import EvalError, eval_line, one_line, query


def test_load_builds_unit_table():
    ctx = unit_engine.load()
    assert 'meter' in ctx.units
    assert 'mile' in ctx.units
    assert ctx.ans is None


def test_plain_arithmetic(ctx):
    assert one_line(ctx, '1 + 2\n') == '3'
    assert one_line(ctx, '2^10') == '1024'


def test_fraction_is_shown_as_decimal(ctx):
    assert one_line(ctx, '1/4') == '0.25'


def test_conversion_to_target_unit(ctx):
    value = eval_line(ctx, '10 km -> mile')
    assert value.unit == 'mile'
    assert value.magnitude.startswith('6.2137')
    assert value.quantity == 'length'


def test_conversion_with_to_keyword(ctx):
    value = eval_line(ctx, '1 hour to second')
    assert value.magnitude == '3600'
    assert value.unit == 'second'


def test_mixed_sum_reported_in_base_units(ctx):
    value = eval_line(ctx, '3 meter + 2 foot')
    assert value.unit == 'meter'
    assert value.magnitude.startswith('3.6096')


def test_previous_answer_is_available(ctx):
    one_line(ctx, '2 + 2')
    assert one_line(ctx, 'ans * 2') == '8'


def test_unknown_unit_is_an_eval_error(ctx):
    with pytest.raises(EvalError, match='Unknown unit'):
        eval_line(ctx, '3 florbits')


def test_adding_length_and_time_fails(ctx):
    with pytest.raises(EvalError, match='Conformance error'):
        eval_line(ctx, '1 meter + 1 second')


def test_converting_to_wrong_dimension_fails(ctx):
    with pytest.raises(EvalError, match='Conformance error'):
        eval_line(ctx, '1 meter -> second')


def test_empty_line_is_an_eval_error(ctx):
    with pytest.raises(EvalError):
        eval_line(ctx, '   \n')


def test_syntax_error_is_an_eval_error(ctx):
    with pytest.raises(EvalError):
        eval_line(ctx, '1 +* (')


def test_query_ranks_prefix_matches_first(ctx):
    reply = query(ctx, 'mete', 100)
    assert reply.results
    assert reply.results[0].unit.startswith('mete')
    assert any(r.unit == 'meter' for r in reply.results)
    assert reply.results[0].score >= max(r.score for r in reply.results)


def test_query_respects_limit(ctx):
    assert len(query(ctx, '', 5).results) == 5
    assert len(query(ctx, 'mete', 1).results) == 1


def test_query_result_carries_dimension(ctx):
    reply = query(ctx, 'meter', 100)
    meter = next(r for r in reply.results if r.unit == 'meter')
    assert meter.quantity == 'length'
    assert str(meter) == 'meter (length)'


def test_dimensioned_exponent_is_an_eval_error(ctx):
    with pytest.raises(EvalError):
        eval_line(ctx, 'meter**meter')


def test_huge_integer_is_shown_in_scientific_notation(ctx):
    value = eval_line(ctx, '10**10000')
    assert value.magnitude.startswith('1.0')
    assert 'e+10000' in value.magnitude


def test_lines_cannot_run_python(ctx, tmp_path):
    target = tmp_path / 'written'
    with pytest.raises(EvalError):
        eval_line(ctx, f'open({str(target)!r}, "w").write("x")')
    with pytest.raises(EvalError):
        eval_line(ctx, f'sin("open({str(target)!r}, \'w\')")')
    assert not target.exists()


def test_dunder_and_attribute_access_are_rejected(ctx):
    with pytest.raises(EvalError):
        eval_line(ctx, 'meter.__class__')
    with pytest.raises(EvalError):
        eval_line(ctx, 'meter.scale_factor')


def test_decimal_point_still_parses(ctx):
    assert one_line(ctx, '1.5 + 2.25') == '3.75'


def test_function_of_dimensioned_value_is_an_eval_error(ctx):
    with pytest.raises(EvalError, match='Conformance error'):
        eval_line(ctx, 'sin(meter)')
    with pytest.raises(EvalError, match='Conformance error'):
        eval_line(ctx, 'exp(2 second)')


def test_function_of_number_still_works(ctx):
    assert one_line(ctx, 'sin(pi/2)') == '1'
    assert one_line(ctx, 'cos(meter/meter - 1)') == '1'


def test_unknown_function_is_an_eval_error(ctx):
    with pytest.raises(EvalError, match='Unknown function'):
        eval_line(ctx, 'frobnicate(2)')


def test_negative_query_limit_returns_nothing(ctx):
    assert query(ctx, 'mete', -3).results == []
    assert query(ctx, 'mete', 0).results == []
