"""
FIRST/FOLLOW computation and LL(1) conflict checking.

Both set families are least fixed points: every pass over the productions
may only add symbols, and each set is bounded by the terminal alphabet plus
the end marker, so the loops terminate.
"""

from dataclasses import dataclass, field
from typing import List, Set, Dict, Tuple, Optional

from cfg_parser import Grammar, Body, EPSILON, END_MARKER, SymbolType, format_rule


@dataclass
class FirstFollowSets:
    """FIRST for terminals and non-terminals, FOLLOW for non-terminals."""
    first: Dict[str, Set[str]]
    follow: Dict[str, Set[str]]

    def first_sorted(self) -> Dict[str, List[str]]:
        return {symbol: sorted(values) for symbol, values in self.first.items()}

    def follow_sorted(self) -> Dict[str, List[str]]:
        return {symbol: sorted(values) for symbol, values in self.follow.items()}


@dataclass
class LL1Conflict:
    """A pair of alternatives of one head that a single lookahead cannot tell apart."""
    head: str
    conflict_type: str  # "FIRST/FIRST" or "FIRST/FOLLOW"
    alternatives: Tuple[int, int]  # 1-based
    symbols: List[str] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    description: str = ""

    def __str__(self) -> str:
        return self.description


class FirstFollowComputer:
    """Computes FIRST and FOLLOW sets for grammar symbols."""

    def __init__(self, grammar: Grammar, sets: Optional[FirstFollowSets] = None):
        self.grammar = grammar
        self._first: Dict[str, Set[str]] = {}
        self._follow: Dict[str, Set[str]] = {}
        self._computed = False
        if sets is not None:
            self._first = sets.first
            self._follow = sets.follow
            self._computed = True

    def compute(self) -> FirstFollowSets:
        """Compute both set families and return copies of them."""
        self.compute_first_sets()
        self.compute_follow_sets()
        self._computed = True
        return FirstFollowSets(
            first={symbol: set(values) for symbol, values in self._first.items()},
            follow={symbol: set(values) for symbol, values in self._follow.items()}
        )

    def compute_first_sets(self) -> Dict[str, Set[str]]:
        """
        Compute FIRST sets for all grammar symbols.

        FIRST(X) is the set of terminals that begin strings derived from X.
        If X derives epsilon, then epsilon is in FIRST(X).
        """
        self._first = {name: set() for name in self.grammar.non_terminals}
        for terminal in self.grammar.terminals:
            self._first[terminal] = {terminal}

        # Iterate until no changes (fixed point)
        changed = True
        while changed:
            changed = False
            for head, bodies in self.grammar.productions.items():
                head_first = self._first.setdefault(head, set())
                for body in bodies:
                    before_size = len(head_first)
                    head_first.update(self.first_of_string(body))
                    if len(head_first) > before_size:
                        changed = True

        return self._first

    def compute_follow_sets(self) -> Dict[str, Set[str]]:
        """
        Compute FOLLOW sets for all non-terminals.

        FOLLOW(A) is the set of terminals that can appear immediately
        to the right of A in some sentential form.
        """
        self._follow = {name: set() for name in self.grammar.non_terminals}
        self._follow.setdefault(self.grammar.start_symbol, set()).add(END_MARKER)

        changed = True
        while changed:
            changed = False
            for head, bodies in self.grammar.productions.items():
                for body in bodies:
                    for i, symbol in enumerate(body):
                        if symbol.type != SymbolType.NONTERMINAL:
                            continue
                        symbol_follow = self._follow.setdefault(symbol.value, set())
                        before_size = len(symbol_follow)

                        # Add FIRST(beta) - {epsilon} to FOLLOW(symbol)
                        first_beta = self.first_of_string(body[i + 1:])
                        symbol_follow.update(first_beta - {EPSILON})

                        # If epsilon in FIRST(beta), add FOLLOW(head) to FOLLOW(symbol)
                        if EPSILON in first_beta:
                            symbol_follow.update(self._follow.get(head, set()))

                        if len(symbol_follow) > before_size:
                            changed = True

        return self._follow

    def first_of_string(self, symbols: Body) -> Set[str]:
        """
        FIRST set of a sequence of symbols.

        FIRST(X1 X2 ... Xn):
        - Add FIRST(X1) - {epsilon}
        - If epsilon in FIRST(X1), add FIRST(X2) - {epsilon}
        - Continue until Xi where epsilon not in FIRST(Xi)
        - If epsilon in FIRST(Xi) for all i (or n == 0), add epsilon
        """
        result = set()
        for symbol in symbols:
            if symbol.type == SymbolType.EPSILON:
                continue
            if symbol.type == SymbolType.TERMINAL:
                result.add(symbol.value)
                return result
            symbol_first = self._first.get(symbol.value, set())
            result.update(symbol_first - {EPSILON})
            if EPSILON not in symbol_first:
                return result
        result.add(EPSILON)
        return result

    def get_first(self, symbol: str) -> Set[str]:
        if not self._computed:
            self.compute()
        return set(self._first.get(symbol, set()))

    def get_follow(self, symbol: str) -> Set[str]:
        if not self._computed:
            self.compute()
        return set(self._follow.get(symbol, set()))


def compute_first_follow(grammar: Grammar) -> FirstFollowSets:
    return FirstFollowComputer(grammar).compute()


def check_ll1_conflicts(grammar: Grammar, sets: Optional[FirstFollowSets] = None) -> List[LL1Conflict]:
    """
    List FIRST/FIRST and FIRST/FOLLOW conflicts.

    For every head, every pair of alternatives i < j is compared, in head
    declaration order. Alternative numbers in the messages are 1-based.
    """
    if sets is None:
        sets = compute_first_follow(grammar)
    computer = FirstFollowComputer(grammar, sets)

    conflicts = []
    for head, bodies in grammar.productions.items():
        firsts = [computer.first_of_string(body) for body in bodies]
        head_follow = sets.follow.get(head, set())
        for i in range(len(bodies)):
            for j in range(i + 1, len(bodies)):
                rules = [format_rule(head, bodies[i]), format_rule(head, bodies[j])]

                shared = sorted((firsts[i] & firsts[j]) - {EPSILON})
                if shared:
                    conflicts.append(LL1Conflict(
                        head=head,
                        conflict_type="FIRST/FIRST",
                        alternatives=(i + 1, j + 1),
                        symbols=shared,
                        rules=rules,
                        description=f"FIRST/FIRST conflict in {head}: alternatives {i + 1} "
                                    f"and {j + 1} share {{{', '.join(shared)}}}"
                    ))

                if EPSILON in firsts[i]:
                    overlap = sorted(firsts[j] & head_follow)
                    if overlap:
                        conflicts.append(LL1Conflict(
                            head=head,
                            conflict_type="FIRST/FOLLOW",
                            alternatives=(i + 1, j + 1),
                            symbols=overlap,
                            rules=rules,
                            description=f"FIRST/FOLLOW conflict in {head}: alternative {j + 1} "
                                        f"FIRST intersects FOLLOW on {{{', '.join(overlap)}}}"
                        ))

    return conflicts
