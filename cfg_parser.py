"""
CFG Parser Implementation - Core Data Structures and Grammar Processing

This module implements the grammar model shared by every analysis component:
symbols, productions kept in declaration order, validation errors, the
text -> Grammar parser, the Grammar -> text serializer and the reachability
query.
"""

from dataclasses import dataclass, field
from typing import List, Set, Dict, Optional
from collections import deque
from enum import Enum
import re


EPSILON = 'ε'
END_MARKER = '$'
EPSILON_SPELLINGS = ('ε', 'epsilon', 'eps')

NON_TERMINAL_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9'_]*$")
PRODUCTION_PATTERN = re.compile(r"^(\S+?)\s*(?:->|→)\s*(.*)$")


class SymbolType(Enum):
    """The three kinds of grammar symbols."""
    TERMINAL = "terminal"
    NONTERMINAL = "nonterminal"
    EPSILON = "epsilon"


@dataclass(frozen=True)
class Symbol:
    """A single grammar symbol. Two symbols are equal when type and value match."""
    type: SymbolType
    value: str

    @classmethod
    def terminal(cls, value: str) -> 'Symbol':
        return cls(SymbolType.TERMINAL, value)

    @classmethod
    def nonterminal(cls, name: str) -> 'Symbol':
        return cls(SymbolType.NONTERMINAL, name)

    @classmethod
    def epsilon(cls) -> 'Symbol':
        return cls(SymbolType.EPSILON, EPSILON)

    @property
    def is_terminal(self) -> bool:
        return self.type == SymbolType.TERMINAL

    @property
    def is_nonterminal(self) -> bool:
        return self.type == SymbolType.NONTERMINAL

    @property
    def is_epsilon(self) -> bool:
        return self.type == SymbolType.EPSILON

    def __str__(self) -> str:
        return self.value


Body = List[Symbol]


def format_body(body: Body) -> str:
    """Space-join the literal values of a production body."""
    return ' '.join(symbol.value for symbol in body)


def format_rule(head: str, body: Body) -> str:
    return f"{head} -> {format_body(body)}"


@dataclass
class Grammar:
    """
    Represents a context-free grammar.

    ``productions`` maps each head to its alternatives and preserves the order
    in which heads were declared; the start symbol is the first declared head.
    A Grammar is never modified after construction - transformations build a
    new one.
    """
    start_symbol: str
    non_terminals: Set[str]
    terminals: Set[str]
    productions: Dict[str, List[Body]]

    @classmethod
    def from_productions(cls, start_symbol: str, productions: Dict[str, List[Body]]) -> 'Grammar':
        """Build a Grammar, deriving the symbol sets from the production bodies."""
        non_terminals = set(productions)
        terminals = set()
        for bodies in productions.values():
            for body in bodies:
                for symbol in body:
                    if symbol.is_nonterminal:
                        non_terminals.add(symbol.value)
                    elif symbol.is_terminal:
                        terminals.add(symbol.value)
        return cls(
            start_symbol=start_symbol,
            non_terminals=non_terminals,
            terminals=terminals,
            productions=productions
        )

    def copy(self) -> 'Grammar':
        """Structural copy; bodies are copied so the snapshot is independent."""
        return Grammar(
            start_symbol=self.start_symbol,
            non_terminals=set(self.non_terminals),
            terminals=set(self.terminals),
            productions={head: [list(body) for body in bodies]
                         for head, bodies in self.productions.items()}
        )

    def alternatives(self, head: str) -> List[Body]:
        return self.productions.get(head, [])

    def production_count(self) -> int:
        return sum(len(bodies) for bodies in self.productions.values())

    def __str__(self) -> str:
        return grammar_to_string(self)


@dataclass
class ValidationError:
    """A grammar text error. ``line`` is 1-based, 0 when not tied to a line."""
    line: int
    column: int
    message: str

    def __str__(self) -> str:
        if self.line:
            return f"Line {self.line}: {self.message}"
        return self.message


@dataclass
class ParseOutcome:
    """Result of parsing grammar text: a grammar or a non-empty error list, never both."""
    grammar: Optional[Grammar] = None
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.grammar is not None


class GrammarProcessor:
    """
    Processes CFG input text and creates Grammar objects.

    Format, one production per line::

        S -> if cond then S else S | if cond then S | other
        E → E + E | id
        // comments start with two slashes

    Alternatives are tokenized on whitespace. With ``compact_notation``
    enabled, an alternative written without any whitespace (``aSb``) is
    scanned character by character instead.
    """

    def __init__(self, compact_notation: bool = False):
        self.compact_notation = compact_notation
        self.errors: List[ValidationError] = []
        self.productions: Dict[str, List[Body]] = {}

    def parse_grammar(self, cfg_text: str) -> ParseOutcome:
        """
        Parse CFG input text.

        Errors are accumulated rather than raised: a malformed line is
        reported and skipped, and the scan continues.

        Args:
            cfg_text: Grammar text

        Returns:
            ParseOutcome holding either the Grammar or the list of errors
        """
        self._reset()
        start_symbol = ""

        for line_number, raw_line in enumerate(cfg_text.split('\n'), 1):
            line = raw_line.strip()
            if not line or line.startswith('//'):
                continue

            head = self._parse_line(line, line_number)
            if head and not start_symbol:
                start_symbol = head

        if not self.productions and not self.errors:
            self.errors.append(ValidationError(0, 0, "No productions found"))

        used_non_terminals = self._collect_used_non_terminals()
        for name in used_non_terminals:
            if name not in self.productions and name != EPSILON:
                self.errors.append(
                    ValidationError(0, 0, f'Non-terminal "{name}" is used but never defined')
                )

        if self.errors:
            return ParseOutcome(grammar=None, errors=list(self.errors))

        return ParseOutcome(grammar=Grammar.from_productions(start_symbol, self.productions))

    def _reset(self):
        """Reset internal state for new grammar parsing."""
        self.errors = []
        self.productions = {}

    def _parse_line(self, line: str, line_number: int) -> Optional[str]:
        """Parse one production line, returning its head when the head is valid."""
        match = PRODUCTION_PATTERN.match(line)
        if not match:
            self.errors.append(ValidationError(
                line_number, 1,
                "Invalid production format. Expected: NonTerminal -> Production1 | Production2"
            ))
            return None

        head, rhs_text = match.group(1), match.group(2)
        if not NON_TERMINAL_PATTERN.match(head):
            self.errors.append(ValidationError(
                line_number, 1, f'Non-terminal "{head}" must start with uppercase letter'
            ))
            return None

        bodies = self.productions.setdefault(head, [])
        for alternative in (alt.strip() for alt in rhs_text.split('|')):
            if not alternative:
                self.errors.append(ValidationError(
                    line_number, 1, f"Empty alternative in production for {head}"
                ))
                continue
            bodies.append(self._parse_symbols(alternative))

        return head

    def _parse_symbols(self, rhs_text: str) -> Body:
        """Tokenize one alternative into symbols."""
        tokens = rhs_text.split()
        if self.compact_notation and len(tokens) == 1 and rhs_text not in EPSILON_SPELLINGS:
            tokens = tokenize_compact(rhs_text)
        return [token_to_symbol(token) for token in tokens]

    def _collect_used_non_terminals(self) -> List[str]:
        """Every non-terminal name in declaration/usage order, without duplicates."""
        names = list(self.productions)
        seen = set(names)
        for bodies in self.productions.values():
            for body in bodies:
                for symbol in body:
                    if symbol.is_nonterminal and symbol.value not in seen:
                        seen.add(symbol.value)
                        names.append(symbol.value)
        return names


def parse_grammar(cfg_text: str, compact_notation: bool = False) -> ParseOutcome:
    """Convenience wrapper around GrammarProcessor.parse_grammar."""
    return GrammarProcessor(compact_notation=compact_notation).parse_grammar(cfg_text)


def token_to_symbol(token: str) -> Symbol:
    if token in EPSILON_SPELLINGS:
        return Symbol.epsilon()
    if NON_TERMINAL_PATTERN.match(token):
        return Symbol.nonterminal(token)
    return Symbol.terminal(token)


def tokenize_compact(text: str) -> List[str]:
    """
    Split a whitespace-free alternative such as ``aSb`` or ``(E')``.

    An uppercase letter starts a non-terminal that absorbs following digits,
    primes and underscores; a lowercase letter or the next uppercase letter
    ends it. Every other character is a single-character terminal, so ``Sa``
    is read as ``S a`` and ``id`` as ``i d``.
    """
    tokens = []
    i = 0
    while i < len(text):
        char = text[i]
        if 'A' <= char <= 'Z':
            name = char
            i += 1
            while i < len(text) and (text[i].isdigit() or text[i] in "'_"):
                name += text[i]
                i += 1
            tokens.append(name)
        else:
            tokens.append(char)
            i += 1
    return tokens


def grammar_to_string(grammar: Grammar) -> str:
    """
    Serialize a grammar back to arrow notation.

    The start symbol's production comes first, then the remaining heads in
    declaration order. The output parses back to the same structure.
    """
    lines = []
    start_bodies = grammar.productions.get(grammar.start_symbol)
    if start_bodies is not None:
        lines.append(_format_production(grammar.start_symbol, start_bodies))
    for head, bodies in grammar.productions.items():
        if head == grammar.start_symbol:
            continue
        lines.append(_format_production(head, bodies))
    return '\n'.join(lines)


def _format_production(head: str, bodies: List[Body]) -> str:
    return f"{head} -> {' | '.join(format_body(body) for body in bodies)}"


def detect_unreachable(grammar: Grammar) -> List[str]:
    """Non-terminals never reached by a breadth-first walk from the start symbol."""
    reachable = {grammar.start_symbol}
    queue = deque([grammar.start_symbol])

    while queue:
        name = queue.popleft()
        for body in grammar.alternatives(name):
            for symbol in body:
                if symbol.is_nonterminal and symbol.value not in reachable:
                    reachable.add(symbol.value)
                    queue.append(symbol.value)

    unreachable = [head for head in grammar.productions if head not in reachable]
    for name in sorted(grammar.non_terminals - set(grammar.productions)):
        if name not in reachable:
            unreachable.append(name)
    return unreachable
