from cfg_parser import parse_grammar
from parse_tree import ParseTreeBuilder, SampleStringGenerator, build_parse_trees, generate_sample_strings


def grammar_of(text):
    outcome = parse_grammar(text)
    assert outcome.success, outcome.errors
    return outcome.grammar


def collect_ids(node):
    ids = [node.node_id]
    for child in node.children:
        ids.extend(collect_ids(child))
    return ids


def test_one_tree_per_start_alternative():
    trees = build_parse_trees(grammar_of("E -> E + E | id"))

    assert len(trees) == 2
    first, second = trees
    assert first.label == 'E'
    assert [child.label for child in first.children] == ['E', '+', 'E']
    assert first.leaves() == ['id', '+', 'id']
    assert [child.label for child in second.children] == ['id']
    assert second.children[0].is_terminal


def test_max_trees_limits_alternatives():
    trees = build_parse_trees(grammar_of("S -> a | b | c"), max_trees=2)

    assert [tree.children[0].label for tree in trees] == ['a', 'b']


def test_non_terminals_expand_with_shortest_alternative():
    trees = build_parse_trees(grammar_of("S -> A\nA -> a A b | c d | e"))

    assert trees[0].leaves() == ['e']


def test_depth_bound_stops_cyclic_expansion():
    trees = build_parse_trees(grammar_of("S -> ( S )"), max_depth=3)

    tree = trees[0]
    assert tree.depth() == 4
    deepest = tree.children[1].children[1].children[1]
    assert deepest.label == 'S'
    assert deepest.children == []
    assert not deepest.is_terminal


def test_epsilon_becomes_terminal_leaf():
    trees = build_parse_trees(grammar_of("S -> A b\nA -> ε"))

    epsilon = trees[0].children[0].children[0]
    assert epsilon.label == 'ε'
    assert epsilon.is_terminal


def test_node_ids_are_scoped_to_one_build():
    builder = ParseTreeBuilder(grammar_of("E -> E + E | id"))

    first_build = builder.build_trees()
    second_build = builder.build_trees()

    ids = [node_id for tree in first_build for node_id in collect_ids(tree)]
    assert len(ids) == len(set(ids))
    assert first_build[0].node_id == 'n0'
    assert second_build[0].node_id == 'n0'
    assert ids == [node_id for tree in second_build for node_id in collect_ids(tree)]


def test_tree_to_dict():
    tree = build_parse_trees(grammar_of("S -> a"))[0]

    assert tree.to_dict() == {
        'id': 'n0',
        'label': 'S',
        'isTerminal': False,
        'children': [{'id': 'n1', 'label': 'a', 'isTerminal': True, 'children': []}]
    }


def test_sample_strings():
    samples = generate_sample_strings(grammar_of("S -> a S b | ε"), max_length=4)

    assert samples == ['a a b b', 'a b']


def test_sample_strings_are_capped_and_deduplicated():
    assert generate_sample_strings(grammar_of("S -> a | b | c | d"), max_samples=2) == ['a', 'b']
    assert generate_sample_strings(grammar_of("S -> a | a")) == ['a']


def test_sample_strings_respect_length_bound():
    samples = SampleStringGenerator(grammar_of("E -> E + E | id"), max_length=5).generate()

    assert samples
    assert 'id' in samples
    for sample in samples:
        assert len(sample.split()) <= 5


def test_sample_generation_terminates_on_pure_cycle():
    assert generate_sample_strings(grammar_of("S -> S")) == []
