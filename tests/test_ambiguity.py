from cfg_parser import parse_grammar
from ambiguity import (
    AmbiguityDetector, AmbiguityReason, AmbiguityStatus, Severity, detect_ambiguity, status_for
)


DANGLING_ELSE = "S -> if cond then S else S | if cond then S | other"


def grammar_of(text):
    outcome = parse_grammar(text)
    assert outcome.success, outcome.errors
    return outcome.grammar


def reason_types(result):
    return [reason.type for reason in result.reasons]


def test_expression_ambiguity():
    result = detect_ambiguity(grammar_of("E -> E + E | id"))

    assert result.status == AmbiguityStatus.AMBIGUOUS
    assert result.is_ambiguous
    reason = result.reasons[0]
    assert reason.type == 'Expression Ambiguity'
    assert reason.severity == Severity.HIGH
    assert reason.involved_rules == ['E -> E + E']
    assert '"a + b + c"' in reason.description


def test_expression_ambiguity_folds_in_ll1_conflict():
    result = detect_ambiguity(grammar_of("E -> E + E | id"))

    assert reason_types(result) == ['Expression Ambiguity', 'FIRST/FIRST Conflict']
    assert result.reasons[1].severity == Severity.MEDIUM


def test_dangling_else():
    result = detect_ambiguity(grammar_of(DANGLING_ELSE))

    assert result.status == AmbiguityStatus.AMBIGUOUS
    dangling = [reason for reason in result.reasons if reason.type == 'Dangling Else']
    assert len(dangling) == 1
    assert dangling[0].severity == Severity.HIGH
    assert len(dangling[0].involved_rules) == 3


def test_dangling_else_needs_terminal_tokens():
    result = detect_ambiguity(grammar_of("S -> if S else S | if S | x"))

    assert 'Dangling Else' in reason_types(result)

    result = detect_ambiguity(grammar_of("S -> if cond then S | other"))

    assert 'Dangling Else' not in reason_types(result)


def test_prefix_conflict():
    result = detect_ambiguity(grammar_of("S -> a b | a c"))

    prefix = [reason for reason in result.reasons if reason.type == 'Prefix Conflict']
    assert len(prefix) == 1
    assert prefix[0].severity == Severity.LOW
    assert prefix[0].involved_rules == ['S -> a b', 'S -> a c']
    assert 'length 1' in prefix[0].description
    assert result.status == AmbiguityStatus.POSSIBLY_AMBIGUOUS
    assert 'undecidable' in result.explanation


def test_identical_alternatives_are_not_prefix_conflicts():
    result = detect_ambiguity(grammar_of("S -> a | a"))

    assert 'Prefix Conflict' not in reason_types(result)
    assert 'FIRST/FIRST Conflict' in reason_types(result)


def test_mixed_recursion():
    result = detect_ambiguity(grammar_of("E -> E a | b E | c"))

    mixed = [reason for reason in result.reasons if reason.type == 'Mixed Recursion']
    assert len(mixed) == 1
    assert mixed[0].severity == Severity.MEDIUM
    assert result.status == AmbiguityStatus.POSSIBLY_AMBIGUOUS


def test_both_sided_recursion_is_not_mixed_recursion():
    result = detect_ambiguity(grammar_of("E -> E + E | - E | id"))

    assert 'Mixed Recursion' not in reason_types(result)


def test_no_ambiguity_detected():
    result = detect_ambiguity(grammar_of("S -> a S b | c"))

    assert result.status == AmbiguityStatus.NONE_DETECTED
    assert result.reasons == []
    assert 'undecidable' in result.explanation


def test_checks_run_in_fixed_order():
    result = detect_ambiguity(grammar_of("E -> E + E | E a | b E | id"))

    types = reason_types(result)
    assert types.index('Expression Ambiguity') < types.index('Prefix Conflict')
    assert types.index('Prefix Conflict') < types.index('Mixed Recursion')
    assert types.index('Mixed Recursion') < types.index('FIRST/FIRST Conflict')


def test_status_derivation():
    low = AmbiguityReason(type='x', description='', severity=Severity.LOW)
    high = AmbiguityReason(type='y', description='', severity=Severity.HIGH)

    assert status_for([]) == AmbiguityStatus.NONE_DETECTED
    assert status_for([low]) == AmbiguityStatus.POSSIBLY_AMBIGUOUS
    assert status_for([low, high]) == AmbiguityStatus.AMBIGUOUS


def test_detector_can_run_twice():
    detector = AmbiguityDetector(grammar_of("E -> E + E | id"))

    first = detector.detect()
    second = detector.detect()

    assert len(first.reasons) == len(second.reasons)
