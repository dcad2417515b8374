"""
Grammar transformation pipeline.

Four rewrite passes run in a fixed order, each one over the grammar produced
by the previous pass:

1. operator precedence restructuring
2. left recursion elimination
3. left factoring
4. dangling else resolution

Precedence restructuring produces left-recursive rules, which left recursion
elimination then removes, so the order matters. A pass never modifies the
grammar it receives; it returns a new Grammar and a flag saying whether
anything changed.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from cfg_parser import Grammar, Body, Symbol, grammar_to_string
from ambiguity import has_dangling_else, is_if_else_body, is_if_then_body


HIGH_PRECEDENCE_OPERATORS = ('*', '/', '%')


@dataclass
class TransformationStep:
    """Snapshot of the grammar around one applied pass."""
    name: str
    description: str
    before: str
    after: str


@dataclass
class TransformationResult:
    success: bool
    grammar: Grammar
    steps: List[TransformationStep] = field(default_factory=list)
    explanation: str = ""


@dataclass
class PassResult:
    grammar: Grammar
    changed: bool


@dataclass
class TransformationPass:
    name: str
    description: str
    apply: Callable[[Grammar], PassResult]


def fresh_name(candidate: str, taken: Set[str]) -> str:
    """Return ``candidate``, primed until it does not clash with ``taken``."""
    name = candidate
    while name in taken:
        name += "'"
    taken.add(name)
    return name


def _rebuild(grammar: Grammar, productions: Dict[str, List[Body]]) -> Grammar:
    return Grammar.from_productions(grammar.start_symbol, productions)


def apply_operator_precedence(grammar: Grammar) -> PassResult:
    """
    Split ``E -> E op E`` alternatives into precedence levels.

    ``*``, ``/`` and ``%`` bind tighter than every other operator. Only heads
    with at least two operator alternatives spread over both levels are
    rewritten::

        E  -> E + ET | ET
        ET -> ET * EF | EF
        EF -> <base alternatives, E retargeted to EF>
    """
    productions = dict(grammar.productions)
    taken = set(grammar.non_terminals)
    changed = False

    for head, bodies in grammar.productions.items():
        head_symbol = Symbol.nonterminal(head)
        operator_bodies = []
        base_bodies = []
        for body in bodies:
            if len(body) == 3 and body[0] == head_symbol and body[2] == head_symbol \
                    and body[1].is_terminal:
                operator_bodies.append(body)
            else:
                base_bodies.append(body)

        if len(operator_bodies) < 2:
            continue
        high = [body for body in operator_bodies if body[1].value in HIGH_PRECEDENCE_OPERATORS]
        low = [body for body in operator_bodies if body[1].value not in HIGH_PRECEDENCE_OPERATORS]
        if not high or not low:
            continue

        changed = True
        term = Symbol.nonterminal(fresh_name(head + "T", taken))
        factor = Symbol.nonterminal(fresh_name(head + "F", taken))

        productions[head] = [[head_symbol, body[1], term] for body in low] + [[term]]
        productions[term.value] = [[term, body[1], factor] for body in high] + [[factor]]

        factor_bodies = [[factor if symbol == head_symbol else symbol for symbol in body]
                         for body in base_bodies]
        productions[factor.value] = factor_bodies or [[Symbol.terminal('id')]]

    return PassResult(_rebuild(grammar, productions), changed)


def eliminate_left_recursion(grammar: Grammar) -> PassResult:
    """
    Remove direct left recursion.

    ``A -> A a | b`` becomes ``A -> b A'`` and ``A' -> a A' | ε``. A bare
    ``A -> A`` derives nothing and is dropped.
    """
    productions = dict(grammar.productions)
    taken = set(grammar.non_terminals)
    changed = False

    for head, bodies in grammar.productions.items():
        head_symbol = Symbol.nonterminal(head)
        recursive = [body for body in bodies if body and body[0] == head_symbol]
        others = [body for body in bodies if not body or body[0] != head_symbol]
        if not recursive or not others:
            continue

        changed = True
        tails = [body[1:] for body in recursive if len(body) > 1]
        if not tails:
            productions[head] = [list(body) for body in others]
            continue

        prime = Symbol.nonterminal(fresh_name(head + "'", taken))

        productions[head] = [[symbol for symbol in body if not symbol.is_epsilon] + [prime]
                             for body in others]
        productions[prime.value] = [list(tail) + [prime] for tail in tails] + [[Symbol.epsilon()]]

    return PassResult(_rebuild(grammar, productions), changed)


def left_factor(grammar: Grammar) -> PassResult:
    """
    Pull shared prefixes out of alternatives that start with the same symbol.

    ``S -> a b c | a b d | e`` becomes ``S -> a b S1 | e`` and ``S1 -> c | d``.
    New names use one counter for the whole pass.
    """
    productions = dict(grammar.productions)
    taken = set(grammar.non_terminals)
    changed = False
    counter = 1

    for head, bodies in grammar.productions.items():
        if len(bodies) < 2:
            continue

        groups: Dict[Symbol, List[Body]] = {}
        for body in bodies:
            if body:
                groups.setdefault(body[0], []).append(body)
        if all(len(group) == 1 for group in groups.values()):
            continue

        changed = True
        new_bodies = []
        for group in groups.values():
            if len(group) == 1:
                new_bodies.append(group[0])
                continue

            prefix_length = 0
            for position in range(min(len(body) for body in group)):
                if all(body[position] == group[0][position] for body in group):
                    prefix_length += 1
                else:
                    break

            while head + str(counter) in taken:
                counter += 1
            factored = Symbol.nonterminal(head + str(counter))
            taken.add(factored.value)
            counter += 1

            new_bodies.append(list(group[0][:prefix_length]) + [factored])
            productions[factored.value] = [list(body[prefix_length:]) or [Symbol.epsilon()]
                                           for body in group]

        productions[head] = new_bodies

    return PassResult(_rebuild(grammar, productions), changed)


def resolve_dangling_else(grammar: Grammar) -> PassResult:
    """
    Separate matched and unmatched statements so ``else`` binds to the nearest ``if``.

    For ``S -> if cond then S else S | if cond then S | other``::

        S  -> SM | SU
        SM -> other | if cond then SM else SM
        SU -> if cond then S | if cond then SM else SU

    The grammar's own if-then and if-then-else alternatives are used as the
    templates for the new rules.
    """
    productions = dict(grammar.productions)
    taken = set(grammar.non_terminals)
    changed = False

    for head, bodies in grammar.productions.items():
        if not has_dangling_else(bodies):
            continue

        changed = True
        head_symbol = Symbol.nonterminal(head)
        matched = Symbol.nonterminal(fresh_name(head + "M", taken))
        unmatched = Symbol.nonterminal(fresh_name(head + "U", taken))

        def retarget(body: Body, before_else: Symbol, after_else: Symbol) -> Body:
            split = next(i for i, symbol in enumerate(body)
                         if symbol.is_terminal and symbol.value == 'else')
            return [(before_else if i < split else after_else) if symbol == head_symbol else symbol
                    for i, symbol in enumerate(body)]

        base_bodies = [body for body in bodies
                       if not any(symbol.is_terminal and symbol.value == 'if' for symbol in body)]
        if_else_bodies = [body for body in bodies if is_if_else_body(body)]
        if_then_bodies = [body for body in bodies if is_if_then_body(body)]

        productions[head] = [[matched], [unmatched]]
        productions[matched.value] = [list(body) for body in base_bodies] + \
            [retarget(body, matched, matched) for body in if_else_bodies]
        productions[unmatched.value] = [list(body) for body in if_then_bodies] + \
            [retarget(body, matched, unmatched) for body in if_else_bodies]

    return PassResult(_rebuild(grammar, productions), changed)


DEFAULT_PASSES = [
    TransformationPass(
        name="Operator Precedence & Associativity",
        description="Restructured grammar to enforce operator precedence and left associativity "
                    "by introducing new non-terminals for each precedence level.",
        apply=apply_operator_precedence
    ),
    TransformationPass(
        name="Left Recursion Elimination",
        description="Eliminated direct left recursion by introducing new non-terminals with "
                    "right-recursive epsilon productions.",
        apply=eliminate_left_recursion
    ),
    TransformationPass(
        name="Left Factoring",
        description="Factored common prefixes into shared non-terminals to eliminate prefix conflicts.",
        apply=left_factor
    ),
    TransformationPass(
        name="Dangling Else Resolution",
        description="Resolved dangling else by separating matched and unmatched statement non-terminals.",
        apply=resolve_dangling_else
    ),
]


class GrammarTransformer:
    """Runs an ordered list of passes and records a step for every pass that changed something."""

    def __init__(self, passes: Optional[List[TransformationPass]] = None):
        self.passes = passes if passes is not None else DEFAULT_PASSES

    def transform(self, grammar: Grammar) -> TransformationResult:
        steps = []
        current = grammar.copy()

        for transformation in self.passes:
            result = transformation.apply(current)
            if not result.changed:
                continue
            steps.append(TransformationStep(
                name=transformation.name,
                description=transformation.description,
                before=grammar_to_string(current),
                after=grammar_to_string(result.grammar)
            ))
            current = result.grammar

        if not steps:
            return TransformationResult(
                success=False,
                grammar=grammar,
                steps=[],
                explanation="No applicable transformations were found. The grammar may be "
                            "inherently ambiguous, or it may require manual restructuring that "
                            "is beyond automated heuristic transformation."
            )

        return TransformationResult(
            success=True,
            grammar=current,
            steps=steps,
            explanation=f"Applied {len(steps)} transformation(s) to reduce ambiguity. "
                        f"Review the converted grammar to verify language preservation."
        )


def transform_grammar(grammar: Grammar) -> TransformationResult:
    return GrammarTransformer().transform(grammar)
