"""Tests for px_forge.core.expr: parsing and evaluating colour expressions."""

import pytest
from px_forge.core.colour import BLACK, WHITE, Colour
from px_forge.core.errors import ExpressionError, UndefinedColourError, UnknownFunctionError
from px_forge.core.expr import (
    FunctionCall,
    HexLiteral,
    Percent,
    Reference,
    evaluate,
    parse,
    references,
    strip_sigil,
)

COLOURS = {'black': BLACK, 'white': WHITE, 'red': Colour(255, 0, 0)}


def lookup(name):
    return COLOURS.get(name)


class TestParse:
    def test_hex(self):
        assert parse('#FF0000') == HexLiteral('#FF0000')

    def test_sigil_reference(self):
        assert parse('$gold') == Reference('gold')

    def test_bare_reference(self):
        assert parse('gold') == Reference('gold')

    def test_percent(self):
        assert parse('20%') == Percent(20.0)

    def test_fractional_percent(self):
        assert parse('50.5%') == Percent(50.5)

    def test_call(self):
        assert parse('darken($gold, 20%)') == FunctionCall('darken', (Reference('gold'), Percent(20.0)))

    def test_nested_call(self):
        tree = parse('darken(mix($a, #fff, 25%), 10%)')
        assert tree == FunctionCall(
            'darken',
            (FunctionCall('mix', (Reference('a'), HexLiteral('#fff'), Percent(25.0))), Percent(10.0)),
        )

    def test_whitespace_is_trimmed(self):
        assert parse('  lighten( $a ,5% )  ') == FunctionCall('lighten', (Reference('a'), Percent(5.0)))

    @pytest.mark.parametrize('text', ['inf%', '-inf%', 'nan%', '1e400%'])
    def test_non_finite_percent(self, text):
        with pytest.raises(ExpressionError, match='Invalid percentage'):
            parse(text)

    @pytest.mark.parametrize(
        'text',
        ['', '   ', 'darken($a, 20%', '(a, b)', 'abc%', '$', 'darken($a,, 20%)', 'a, b', 'mix(a, (b), c))'],
    )
    def test_syntax_errors(self, text):
        with pytest.raises(ExpressionError):
            parse(text)


class TestReferences:
    def test_collects_nested_names(self):
        assert references(parse('mix($a, darken(b, 10%), 50%)')) == {'a', 'b'}

    def test_literal_has_none(self):
        assert references(parse('#123456')) == set()

    def test_strip_sigil(self):
        assert strip_sigil('$gold') == 'gold'
        assert strip_sigil('gold') == 'gold'


class TestEvaluate:
    def test_hex(self):
        assert evaluate(parse('#00FF00'), lookup) == Colour(0, 255, 0)

    def test_reference(self):
        assert evaluate(parse('$red'), lookup) == Colour(255, 0, 0)

    def test_undefined_reference(self):
        with pytest.raises(UndefinedColourError, match='Undefined colour: \\$nope'):
            evaluate(parse('$nope'), lookup)

    def test_bare_hex_suggests_sigil(self):
        with pytest.raises(UndefinedColourError) as excinfo:
            evaluate(parse('FF0000'), lookup)
        assert excinfo.value.help == 'Hex colours need a leading #: #FF0000'

    def test_plain_name_has_no_hex_help(self):
        with pytest.raises(UndefinedColourError) as excinfo:
            evaluate(parse('gold'), lookup)
        assert excinfo.value.help is None

    def test_percent_alone_is_an_error(self):
        with pytest.raises(ExpressionError):
            evaluate(parse('50%'), lookup)

    def test_mix(self):
        assert evaluate(parse('mix($black, $white, 50%)'), lookup) == Colour(128, 128, 128)

    def test_alpha(self):
        assert evaluate(parse('alpha($red, 50%)'), lookup) == Colour(255, 0, 0, 128)

    def test_nested(self):
        assert evaluate(parse('darken(mix($black, $white, 100%), 100%)'), lookup) == BLACK

    def test_unknown_function_names_the_call(self):
        with pytest.raises(UnknownFunctionError, match='blur'):
            evaluate(parse('blur($red, 10%)'), lookup)

    def test_unknown_function_is_an_expression_error(self):
        with pytest.raises(ExpressionError):
            evaluate(parse('blur($red, 10%)'), lookup)

    def test_wrong_arity(self):
        with pytest.raises(ExpressionError, match='darken'):
            evaluate(parse('darken($red)'), lookup)

    def test_mix_wrong_arity(self):
        with pytest.raises(ExpressionError, match='mix'):
            evaluate(parse('mix($red, $black)'), lookup)

    def test_percent_required(self):
        with pytest.raises(ExpressionError, match='percentage'):
            evaluate(parse('lighten($red, $black)'), lookup)
