"""
Display trees and sample strings.

Neither generator parses input. Trees are bounded structural expansions of
the start symbol's alternatives; samples are terminal strings found by a
bounded depth-first expansion. Recursive non-terminals are expanded again at
every level until the depth bound stops them.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Any
import itertools

from cfg_parser import Grammar, Body, Symbol, SymbolType


DEFAULT_MAX_DEPTH = 4
DEFAULT_MAX_TREES = 2
DEFAULT_SAMPLE_LENGTH = 5
DEFAULT_MAX_SAMPLES = 5


@dataclass
class ParseTreeNode:
    """Represents a node in a display tree."""
    label: str
    children: List['ParseTreeNode'] = field(default_factory=list)
    is_terminal: bool = False
    node_id: str = ""

    def __str__(self) -> str:
        if self.is_terminal:
            return f"'{self.label}'"
        if not self.children:
            return self.label
        return f"{self.label}({' '.join(str(child) for child in self.children)})"

    def leaves(self) -> List[str]:
        """Labels of the leaf nodes, left to right."""
        if not self.children:
            return [self.label]
        return [label for child in self.children for label in child.leaves()]

    def depth(self) -> int:
        return 1 + max((child.depth() for child in self.children), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.node_id,
            'label': self.label,
            'isTerminal': self.is_terminal,
            'children': [child.to_dict() for child in self.children]
        }


class ParseTreeBuilder:
    """
    Builds one display tree per start-symbol alternative.

    Each non-terminal below the root is expanded with its shortest
    alternative (the first declared one on ties) until ``max_depth`` is
    reached; deeper non-terminals are kept as childless nodes.
    """

    def __init__(self, grammar: Grammar, max_depth: int = DEFAULT_MAX_DEPTH,
                 max_trees: int = DEFAULT_MAX_TREES):
        self.grammar = grammar
        self.max_depth = max_depth
        self.max_trees = max_trees

    def build_trees(self) -> List[ParseTreeNode]:
        start_bodies = self.grammar.alternatives(self.grammar.start_symbol)
        ids = itertools.count()
        next_id = lambda: f"n{next(ids)}"

        trees = []
        for body in start_bodies[:self.max_trees]:
            root = ParseTreeNode(label=self.grammar.start_symbol, node_id=next_id())
            root.children = [self._build_subtree(symbol, 1, next_id) for symbol in body]
            trees.append(root)
        return trees

    def _build_subtree(self, symbol: Symbol, depth: int, next_id: Callable[[], str]) -> ParseTreeNode:
        if symbol.type == SymbolType.EPSILON:
            return ParseTreeNode(label=symbol.value, is_terminal=True, node_id=next_id())
        if symbol.type == SymbolType.TERMINAL:
            return ParseTreeNode(label=symbol.value, is_terminal=True, node_id=next_id())

        node = ParseTreeNode(label=symbol.value, node_id=next_id())
        if depth >= self.max_depth:
            return node

        bodies = self.grammar.alternatives(symbol.value)
        if bodies:
            shortest = min(bodies, key=len)
            node.children = [self._build_subtree(child, depth + 1, next_id) for child in shortest]
        return node


class SampleStringGenerator:
    """
    Enumerates short terminal strings derivable from the start symbol.

    The expansion is depth-first in declaration order. A partial derivation
    is dropped as soon as it holds more than ``max_length`` terminals, and
    expansion stops at depth ``2 * max_length``. Derivations that produce
    only ε are not reported.
    """

    def __init__(self, grammar: Grammar, max_length: int = DEFAULT_SAMPLE_LENGTH,
                 max_samples: int = DEFAULT_MAX_SAMPLES):
        self.grammar = grammar
        self.max_length = max_length
        self.max_samples = max_samples
        self.max_depth = max_length * 2

    def generate(self) -> List[str]:
        seen = set()
        samples = []
        for body in self.grammar.alternatives(self.grammar.start_symbol):
            self._expand(list(body), [], 0, seen, samples)
            if len(samples) >= self.max_samples:
                break
        return samples

    def _expand(self, pending: Body, prefix: List[str], depth: int, seen: set, samples: List[str]):
        if len(samples) >= self.max_samples:
            return
        # Terminals never disappear, so count those still pending as well
        pending_terminals = sum(1 for symbol in pending if symbol.is_terminal)
        if len(prefix) + pending_terminals > self.max_length:
            return

        if not pending:
            sample = ' '.join(prefix)
            if sample and sample not in seen:
                seen.add(sample)
                samples.append(sample)
            return

        symbol, rest = pending[0], pending[1:]
        if symbol.type == SymbolType.EPSILON:
            self._expand(rest, prefix, depth, seen, samples)
        elif symbol.type == SymbolType.TERMINAL:
            self._expand(rest, prefix + [symbol.value], depth, seen, samples)
        else:
            if depth >= self.max_depth:
                return
            for body in self.grammar.alternatives(symbol.value):
                self._expand(list(body) + rest, prefix, depth + 1, seen, samples)
                if len(samples) >= self.max_samples:
                    return


def build_parse_trees(grammar: Grammar, max_depth: int = DEFAULT_MAX_DEPTH,
                      max_trees: int = DEFAULT_MAX_TREES) -> List[ParseTreeNode]:
    return ParseTreeBuilder(grammar, max_depth, max_trees).build_trees()


def generate_sample_strings(grammar: Grammar, max_length: int = DEFAULT_SAMPLE_LENGTH,
                            max_samples: int = DEFAULT_MAX_SAMPLES) -> List[str]:
    return SampleStringGenerator(grammar, max_length, max_samples).generate()
