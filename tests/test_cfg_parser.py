import pytest

from cfg_parser import (
    Grammar, GrammarProcessor, Symbol, SymbolType, parse_grammar, grammar_to_string,
    detect_unreachable, tokenize_compact
)


def nt(name):
    return Symbol.nonterminal(name)


def t(value):
    return Symbol.terminal(value)


EPS = Symbol.epsilon()


def test_parse_simple_grammar():
    outcome = parse_grammar("E -> E + T | T\nT -> id")

    assert outcome.success
    assert outcome.errors == []
    grammar = outcome.grammar
    assert grammar.start_symbol == 'E'
    assert list(grammar.productions) == ['E', 'T']
    assert grammar.productions['E'] == [[nt('E'), t('+'), nt('T')], [nt('T')]]
    assert grammar.productions['T'] == [[t('id')]]
    assert grammar.terminals == {'+', 'id'}
    assert grammar.non_terminals == {'E', 'T'}


def test_unicode_arrow_and_epsilon_spellings():
    outcome = parse_grammar("S → a S b | ε\nA -> epsilon | eps\nB -> A S")

    grammar = outcome.grammar
    assert grammar.productions['S'] == [[t('a'), nt('S'), t('b')], [EPS]]
    assert grammar.productions['A'] == [[EPS], [EPS]]
    assert EPS.type == SymbolType.EPSILON
    assert 'ε' not in grammar.terminals


def test_comments_and_blank_lines_are_ignored():
    outcome = parse_grammar("// arithmetic\n\nS -> a\n   // trailing comment\n")

    assert outcome.success
    assert list(outcome.grammar.productions) == ['S']


def test_errors_accumulate_with_line_numbers():
    outcome = parse_grammar("S -> a\n\ns -> b\nX a b\nS -> a | | b")

    assert outcome.grammar is None
    assert [error.line for error in outcome.errors] == [3, 4, 5]
    assert 'must start with uppercase letter' in outcome.errors[0].message
    assert 'Invalid production format' in outcome.errors[1].message
    assert outcome.errors[2].message == 'Empty alternative in production for S'


def test_undefined_non_terminal_is_single_error():
    outcome = parse_grammar("S -> A")

    assert outcome.grammar is None
    assert len(outcome.errors) == 1
    error = outcome.errors[0]
    assert '"A"' in error.message
    assert 'never defined' in error.message
    assert error.line == 0


def test_no_productions_found():
    outcome = parse_grammar("// nothing here\n\n")

    assert outcome.grammar is None
    assert len(outcome.errors) == 1
    assert outcome.errors[0].message == 'No productions found'


def test_repeated_head_merges_alternatives_and_keeps_first_start():
    outcome = parse_grammar("A -> B\nB -> b\nA -> c")

    grammar = outcome.grammar
    assert grammar.start_symbol == 'A'
    assert list(grammar.productions) == ['A', 'B']
    assert grammar.productions['A'] == [[nt('B')], [t('c')]]


@pytest.mark.parametrize("text", [
    "E -> E + T | T\nT -> T * F | F\nF -> ( E ) | id",
    "S -> if cond then S else S | if cond then S | other",
    "S -> A B\nA -> a A | ε\nB -> b B | ε",
    "E -> T E'\nE' -> + T E' | ε\nT -> id",
])
def test_round_trip(text):
    grammar = parse_grammar(text).grammar

    again = parse_grammar(grammar_to_string(grammar)).grammar

    assert again.start_symbol == grammar.start_symbol
    assert list(again.productions) == list(grammar.productions)
    assert again.productions == grammar.productions


def test_serializer_puts_start_symbol_first():
    grammar = Grammar.from_productions('B', {'A': [[t('a')]], 'B': [[nt('A')], [EPS]]})

    assert grammar_to_string(grammar) == "B -> A | ε\nA -> a"


def test_from_productions_derives_symbol_sets():
    grammar = Grammar.from_productions('S', {'S': [[t('a'), nt('S')], [EPS]]})

    assert grammar.terminals == {'a'}
    assert grammar.non_terminals == {'S'}


def test_copy_is_independent():
    grammar = parse_grammar("S -> a S | b").grammar

    clone = grammar.copy()
    clone.productions['S'].append([t('c')])

    assert len(grammar.productions['S']) == 2


def test_compact_notation():
    processor = GrammarProcessor(compact_notation=True)

    grammar = processor.parse_grammar("S -> aSb | ε\nE -> (E') | x\nE' -> y").grammar

    assert grammar.productions['S'] == [[t('a'), nt('S'), t('b')], [EPS]]
    assert grammar.productions['E'][0] == [t('('), nt("E'"), t(')')]


def test_compact_notation_keeps_whitespace_separated_input():
    text = "S -> a S b | if E then S\nE -> c d"

    compact = GrammarProcessor(compact_notation=True).parse_grammar(text).grammar
    default = GrammarProcessor().parse_grammar(text).grammar

    assert compact.productions == default.productions


def test_tokenize_compact_splits_lowercase_after_non_terminal():
    assert tokenize_compact("Sa") == ['S', 'a']
    assert tokenize_compact("A1B_c") == ['A1', 'B_', 'c']
    assert tokenize_compact("id") == ['i', 'd']


def test_detect_unreachable():
    grammar = parse_grammar("S -> a B\nB -> b\nC -> c D\nD -> d").grammar

    assert detect_unreachable(grammar) == ['C', 'D']


def test_detect_unreachable_handles_cycles():
    grammar = parse_grammar("S -> A\nA -> S | a").grammar

    assert detect_unreachable(grammar) == []
