from cfg_parser import parse_grammar, Symbol
from first_follow import FirstFollowComputer, compute_first_follow, check_ll1_conflicts


EXPRESSION_LL1 = """
E -> T E'
E' -> + T E' | ε
T -> F T'
T' -> * F T' | ε
F -> ( E ) | id
"""


def grammar_of(text):
    outcome = parse_grammar(text)
    assert outcome.success, outcome.errors
    return outcome.grammar


def test_first_and_follow_with_epsilon():
    sets = compute_first_follow(grammar_of("A -> a A b | ε"))

    assert sets.first['A'] == {'a', 'ε'}
    assert sets.follow['A'] == {'$', 'b'}


def test_terminals_map_to_themselves():
    sets = compute_first_follow(grammar_of("A -> a A b | ε"))

    assert sets.first['a'] == {'a'}
    assert sets.first['b'] == {'b'}


def test_classic_expression_grammar():
    sets = compute_first_follow(grammar_of(EXPRESSION_LL1))

    assert sets.first['E'] == {'(', 'id'}
    assert sets.first["E'"] == {'+', 'ε'}
    assert sets.first["T'"] == {'*', 'ε'}
    assert sets.follow['E'] == {'$', ')'}
    assert sets.follow["E'"] == {'$', ')'}
    assert sets.follow['T'] == {'+', '$', ')'}
    assert sets.follow['F'] == {'*', '+', '$', ')'}


def test_follow_never_contains_epsilon():
    sets = compute_first_follow(grammar_of("S -> A B\nA -> a A | ε\nB -> b B | ε"))

    assert sets.first['S'] == {'a', 'b', 'ε'}
    for follow in sets.follow.values():
        assert 'ε' not in follow
    assert sets.follow['A'] == {'b', '$'}


def test_left_recursive_grammar_terminates():
    sets = compute_first_follow(grammar_of("E -> E + T | T\nT -> T * F | F\nF -> ( E ) | id"))

    assert sets.first['E'] == {'(', 'id'}
    assert sets.follow['T'] == {'+', '*', '$', ')'}


def test_first_of_string():
    grammar = grammar_of(EXPRESSION_LL1)
    computer = FirstFollowComputer(grammar)
    computer.compute()

    assert computer.first_of_string([]) == {'ε'}
    assert computer.first_of_string([Symbol.nonterminal("E'"), Symbol.terminal(')')]) == {'+', ')'}
    assert computer.first_of_string([Symbol.epsilon()]) == {'ε'}
    assert computer.get_follow('F') == {'*', '+', '$', ')'}


def test_ll1_grammar_has_no_conflicts():
    assert check_ll1_conflicts(grammar_of(EXPRESSION_LL1)) == []


def test_first_first_conflict():
    conflicts = check_ll1_conflicts(grammar_of("S -> a b | a c"))

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.conflict_type == 'FIRST/FIRST'
    assert conflict.alternatives == (1, 2)
    assert conflict.symbols == ['a']
    assert str(conflict) == 'FIRST/FIRST conflict in S: alternatives 1 and 2 share {a}'


def test_first_follow_conflict():
    conflicts = check_ll1_conflicts(grammar_of("S -> A a\nA -> ε | a"))

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.conflict_type == 'FIRST/FOLLOW'
    assert conflict.head == 'A'
    assert conflict.alternatives == (1, 2)
    assert conflict.description == 'FIRST/FOLLOW conflict in A: alternative 2 FIRST intersects FOLLOW on {a}'


def test_conflicts_follow_head_order():
    conflicts = check_ll1_conflicts(grammar_of("S -> B | x A\nA -> a | a b\nB -> c | c d"))

    assert [conflict.head for conflict in conflicts] == ['A', 'B']


def test_precomputed_sets_are_reused():
    grammar = grammar_of("S -> a b | a c")
    sets = compute_first_follow(grammar)

    assert [str(c) for c in check_ll1_conflicts(grammar, sets)] == \
        [str(c) for c in check_ll1_conflicts(grammar)]
