"""
Heuristic ambiguity detection.

General CFG ambiguity is undecidable, so this module only looks for
structural patterns that are well known to produce more than one parse tree,
and folds in the LL(1) conflicts of the grammar. Each check appends zero or
more reasons; the overall status follows from the most severe reason.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum

from cfg_parser import Grammar, Body, Symbol, format_body, format_rule
from first_follow import FirstFollowSets, check_ll1_conflicts


class Severity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AmbiguityStatus(Enum):
    AMBIGUOUS = "ambiguous"
    POSSIBLY_AMBIGUOUS = "possibly-ambiguous"
    NONE_DETECTED = "no-ambiguity-detected"


@dataclass
class AmbiguityReason:
    """One detected ambiguity source."""
    type: str
    description: str
    involved_rules: List[str] = field(default_factory=list)
    severity: Severity = Severity.LOW

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.type}: {self.description}"


@dataclass
class AmbiguityResult:
    status: AmbiguityStatus
    reasons: List[AmbiguityReason]
    explanation: str

    @property
    def is_ambiguous(self) -> bool:
        return self.status == AmbiguityStatus.AMBIGUOUS


AMBIGUOUS_EXPLANATION = (
    "The grammar contains patterns that are definitively ambiguous. "
    "Multiple parse trees can be constructed for the same input string. "
    "See the detailed reasons below for specific ambiguity sources."
)

POSSIBLY_AMBIGUOUS_EXPLANATION = (
    "The grammar contains patterns that may lead to ambiguity. "
    "While we cannot definitively prove ambiguity (the general problem is undecidable), "
    "the detected patterns are commonly associated with ambiguous grammars."
)

NONE_DETECTED_EXPLANATION = (
    "No common ambiguity patterns were detected in this grammar. "
    "Note: Since general CFG ambiguity detection is undecidable, this does not guarantee "
    "the grammar is unambiguous, only that no known heuristic patterns were found."
)


def status_for(reasons: List[AmbiguityReason]) -> AmbiguityStatus:
    if any(reason.severity == Severity.HIGH for reason in reasons):
        return AmbiguityStatus.AMBIGUOUS
    if reasons:
        return AmbiguityStatus.POSSIBLY_AMBIGUOUS
    return AmbiguityStatus.NONE_DETECTED


def explanation_for(status: AmbiguityStatus) -> str:
    if status == AmbiguityStatus.AMBIGUOUS:
        return AMBIGUOUS_EXPLANATION
    if status == AmbiguityStatus.POSSIBLY_AMBIGUOUS:
        return POSSIBLY_AMBIGUOUS_EXPLANATION
    return NONE_DETECTED_EXPLANATION


def _has_terminal(body: Body, value: str) -> bool:
    return any(symbol.is_terminal and symbol.value == value for symbol in body)


def is_if_else_body(body: Body) -> bool:
    return _has_terminal(body, 'if') and _has_terminal(body, 'else')


def is_if_then_body(body: Body) -> bool:
    return _has_terminal(body, 'if') and not _has_terminal(body, 'else')


def has_dangling_else(bodies: List[Body]) -> bool:
    """True when a head has both an if-then-else and a bare if-then alternative."""
    return any(is_if_else_body(body) for body in bodies) and \
        any(is_if_then_body(body) for body in bodies)


def common_prefix_length(left: Body, right: Body) -> int:
    length = 0
    for a, b in zip(left, right):
        if a != b:
            break
        length += 1
    return length


class AmbiguityDetector:
    """Runs the fixed sequence of ambiguity checks over one grammar."""

    def __init__(self, grammar: Grammar, first_follow: Optional[FirstFollowSets] = None):
        self.grammar = grammar
        self.first_follow = first_follow
        self.reasons: List[AmbiguityReason] = []

    def detect(self) -> AmbiguityResult:
        self.reasons = []

        self.check_expression_ambiguity()
        self.check_dangling_else()
        self.check_prefix_conflicts()
        self.check_mixed_recursion()
        self.check_ll1_conflicts()

        status = status_for(self.reasons)
        return AmbiguityResult(
            status=status,
            reasons=list(self.reasons),
            explanation=explanation_for(status)
        )

    def check_expression_ambiguity(self):
        """Flag ``E -> E op E``: both ends recurse on the head."""
        for head, bodies in self.grammar.productions.items():
            head_symbol = Symbol.nonterminal(head)
            for body in bodies:
                if len(body) < 3 or body[0] != head_symbol or body[-1] != head_symbol:
                    continue
                ops = format_body(body[1:-1])
                self.reasons.append(AmbiguityReason(
                    type="Expression Ambiguity",
                    description=f'Production "{head} -> {head} {ops} {head}" is ambiguous because '
                                f'it allows both left and right association. For input like '
                                f'"a {ops} b {ops} c", multiple parse trees exist.',
                    involved_rules=[format_rule(head, body)],
                    severity=Severity.HIGH
                ))

    def check_dangling_else(self):
        for head, bodies in self.grammar.productions.items():
            if not has_dangling_else(bodies):
                continue
            self.reasons.append(AmbiguityReason(
                type="Dangling Else",
                description=f'Non-terminal "{head}" has both if-then and if-then-else productions, '
                            f'creating the classic dangling else ambiguity. Nested if statements '
                            f'can be parsed in multiple ways.',
                involved_rules=[format_rule(head, body) for body in bodies],
                severity=Severity.HIGH
            ))

    def check_prefix_conflicts(self):
        for head, bodies in self.grammar.productions.items():
            for i in range(len(bodies)):
                for j in range(i + 1, len(bodies)):
                    prefix_length = common_prefix_length(bodies[i], bodies[j])
                    if prefix_length == 0 or bodies[i] == bodies[j]:
                        continue
                    self.reasons.append(AmbiguityReason(
                        type="Prefix Conflict",
                        description=f'Productions for "{head}" share a common prefix of length '
                                    f'{prefix_length}. This can cause parsing conflicts and may '
                                    f'indicate ambiguity.',
                        involved_rules=[format_rule(head, bodies[i]), format_rule(head, bodies[j])],
                        severity=Severity.LOW
                    ))

    def check_mixed_recursion(self):
        """A head with a purely left-recursive body and a separate purely right-recursive one."""
        for head, bodies in self.grammar.productions.items():
            head_symbol = Symbol.nonterminal(head)
            left_only = [body for body in bodies
                         if body and body[0] == head_symbol and body[-1] != head_symbol]
            right_only = [body for body in bodies
                          if body and body[-1] == head_symbol and body[0] != head_symbol]
            if not left_only or not right_only:
                continue
            self.reasons.append(AmbiguityReason(
                type="Mixed Recursion",
                description=f'Non-terminal "{head}" has both left-recursive and right-recursive '
                            f'productions, which can lead to ambiguity in certain derivations.',
                involved_rules=[format_rule(head, body) for body in bodies],
                severity=Severity.MEDIUM
            ))

    def check_ll1_conflicts(self):
        for conflict in check_ll1_conflicts(self.grammar, self.first_follow):
            self.reasons.append(AmbiguityReason(
                type=f"{conflict.conflict_type} Conflict",
                description=conflict.description,
                involved_rules=list(conflict.rules),
                severity=Severity.MEDIUM
            ))


def detect_ambiguity(grammar: Grammar, first_follow: Optional[FirstFollowSets] = None) -> AmbiguityResult:
    return AmbiguityDetector(grammar, first_follow).detect()
