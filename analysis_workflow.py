"""
Grammar analysis workflow.

Runs the whole pipeline for one grammar text - parse, FIRST/FOLLOW, LL(1)
conflicts, reachability, ambiguity heuristics, transformation, display trees
and samples - and returns plain dictionaries that can be sent as JSON. Every
call builds its own objects; nothing is shared between requests.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional
import sys

from cfg_parser import Grammar, GrammarProcessor, ParseOutcome, ValidationError, \
    grammar_to_string, detect_unreachable
from first_follow import LL1Conflict, compute_first_follow, check_ll1_conflicts
from ambiguity import AmbiguityResult, AmbiguityReason, detect_ambiguity
from transformer import TransformationResult, transform_grammar
from parse_tree import ParseTreeBuilder, SampleStringGenerator
from visualization import VisualizationGenerator


class InvalidOptionsError(ValueError):
    """Raised when request options cannot be turned into an AnalysisConfig."""


# Upper bounds for request-supplied limits; tree size and sample search grow
# exponentially with them.
OPTION_LIMITS = {
    'max_tree_depth': 10,
    'max_trees': 10,
    'sample_max_length': 8,
    'max_samples': 50,
}


@dataclass
class AnalysisConfig:
    """Bounds and parser options for one analysis request."""
    max_tree_depth: int = 4
    max_trees: int = 2
    sample_max_length: int = 5
    max_samples: int = 5
    compact_notation: bool = False

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]]) -> 'AnalysisConfig':
        """
        Build a config from request options, ignoring unknown keys.

        Raises:
            InvalidOptionsError: options is not a mapping, a flag is not a
                boolean, or a limit is not an integer in 1..OPTION_LIMITS
        """
        config = cls()
        if options is None:
            return config
        if not isinstance(options, dict):
            raise InvalidOptionsError("options must be a JSON object")
        for config_field in fields(cls):
            if config_field.name in options:
                value = options[config_field.name]
                if config_field.type is bool:
                    value = _parse_flag(config_field.name, value)
                else:
                    value = _parse_limit(config_field.name, value)
                setattr(config, config_field.name, value)
        return config


def _parse_flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    raise InvalidOptionsError(f'Option "{name}" must be true or false')


def _parse_limit(name: str, value: Any) -> int:
    limit = OPTION_LIMITS[name]
    if isinstance(value, bool):
        raise InvalidOptionsError(f'Option "{name}" must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidOptionsError(f'Option "{name}" must be an integer') from None
    if not 1 <= number <= limit:
        raise InvalidOptionsError(f'Option "{name}" must be between 1 and {limit}')
    return number


def errors_to_dicts(errors: List[ValidationError]) -> List[Dict[str, Any]]:
    return [{'line': error.line, 'column': error.column, 'message': error.message} for error in errors]


def reason_to_dict(reason: AmbiguityReason) -> Dict[str, Any]:
    return {
        'type': reason.type,
        'description': reason.description,
        'involvedRules': list(reason.involved_rules),
        'severity': reason.severity.value
    }


def ambiguity_to_dict(result: AmbiguityResult) -> Dict[str, Any]:
    return {
        'status': result.status.value,
        'reasons': [reason_to_dict(reason) for reason in result.reasons],
        'explanation': result.explanation
    }


def transformation_to_dict(result: TransformationResult) -> Dict[str, Any]:
    return {
        'success': result.success,
        'grammar': grammar_to_string(result.grammar),
        'steps': [
            {'name': step.name, 'description': step.description,
             'before': step.before, 'after': step.after}
            for step in result.steps
        ],
        'explanation': result.explanation
    }


def conflict_to_dict(conflict: LL1Conflict) -> Dict[str, Any]:
    return {
        'head': conflict.head,
        'type': conflict.conflict_type,
        'alternatives': list(conflict.alternatives),
        'symbols': list(conflict.symbols),
        'description': conflict.description
    }


def grammar_info(grammar: Grammar) -> Dict[str, Any]:
    return {
        'start_symbol': grammar.start_symbol,
        'terminals': sorted(grammar.terminals),
        'non_terminals': sorted(grammar.non_terminals),
        'production_count': grammar.production_count(),
        'productions': grammar_to_string(grammar).split('\n')
    }


class GrammarAnalysisWorkflow:
    """
    Orchestrates grammar analysis for one request.

    Typical use::

        workflow = GrammarAnalysisWorkflow(AnalysisConfig(max_tree_depth=3))
        result = workflow.analyze("E -> E + E | id")
        if result['success']:
            print(result['ambiguity']['status'])
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.visualizer = VisualizationGenerator()

    def parse(self, cfg_text: str) -> ParseOutcome:
        return GrammarProcessor(compact_notation=self.config.compact_notation).parse_grammar(cfg_text)

    def validate(self, cfg_text: str) -> Dict[str, Any]:
        """
        Parse grammar text and describe the productions found.

        Returns:
            Dictionary containing success status and either grammar
            information or the list of validation errors
        """
        outcome = self.parse(cfg_text)
        if not outcome.success:
            return self._failure(outcome)

        result = {'success': True}
        result.update(grammar_info(outcome.grammar))
        result['unreachable'] = detect_unreachable(outcome.grammar)
        return result

    def analyze(self, cfg_text: str) -> Dict[str, Any]:
        """
        Run every analysis on a grammar.

        Args:
            cfg_text: Grammar text

        Returns:
            Dictionary containing success status, FIRST/FOLLOW sets, LL(1)
            conflicts, unreachable non-terminals, the ambiguity verdict, the
            transformation result, display trees, samples and HTML/DOT
            renderings
        """
        outcome = self.parse(cfg_text)
        if not outcome.success:
            return self._failure(outcome)

        grammar = outcome.grammar
        first_follow = compute_first_follow(grammar)
        conflicts = check_ll1_conflicts(grammar, first_follow)
        ambiguity = detect_ambiguity(grammar, first_follow)
        transformation = transform_grammar(grammar)
        trees = self._build_trees(grammar)

        result = {
            'success': True,
            'grammar_info': grammar_info(grammar),
            'unreachable': detect_unreachable(grammar),
            'first': first_follow.first_sorted(),
            'follow': first_follow.follow_sorted(),
            'll1_conflicts': [conflict_to_dict(conflict) for conflict in conflicts],
            'ambiguity': ambiguity_to_dict(ambiguity),
            'transformation': transformation_to_dict(transformation),
            'parse_trees': [tree.to_dict() for tree in trees],
            'samples': self._generate_samples(grammar),
        }
        result['visualization'] = self.visualizer.generate_complete_visualization(
            grammar, first_follow, conflicts, ambiguity, transformation, trees
        )
        return result

    def transform(self, cfg_text: str) -> Dict[str, Any]:
        outcome = self.parse(cfg_text)
        if not outcome.success:
            return self._failure(outcome)

        transformation = transform_grammar(outcome.grammar)
        result = {'success': True}
        result['transformation'] = transformation_to_dict(transformation)
        result['steps_html'] = self.visualizer.steps_formatter.generate_steps_html(transformation)
        return result

    def parse_trees(self, cfg_text: str) -> Dict[str, Any]:
        """
        Build display trees and samples for the grammar and its converted form.

        The converted entries are present only when a transformation applied.
        """
        outcome = self.parse(cfg_text)
        if not outcome.success:
            return self._failure(outcome)

        grammar = outcome.grammar
        result = {'success': True, 'original': self._tree_payload(grammar), 'converted': None}

        transformation = transform_grammar(grammar)
        if transformation.success:
            result['converted'] = self._tree_payload(transformation.grammar)
        return result

    def generate_report(self, cfg_text: str) -> str:
        """Plain-text analysis report for export."""
        outcome = self.parse(cfg_text)
        text = '=== CFG Ambiguity Analysis Report ===\n\n'

        if not outcome.success:
            text += 'Status: invalid-grammar\n\n'
            text += f'Original Grammar:\n{cfg_text}\n\n'
            text += 'Errors:\n'
            for error in outcome.errors:
                text += f'  - {error}\n'
            return text

        ambiguity = detect_ambiguity(outcome.grammar)
        transformation = transform_grammar(outcome.grammar)

        text += f'Status: {ambiguity.status.value}\n\n'
        text += f'Original Grammar:\n{cfg_text}\n\n'
        text += f'Explanation:\n{ambiguity.explanation}\n\n'
        if transformation.success:
            text += f'Converted Grammar:\n{grammar_to_string(transformation.grammar)}\n\n'
            text += 'Transformation Steps:\n'
            for i, step in enumerate(transformation.steps, 1):
                text += f'  {i}. {step.name}: {step.description}\n'
        return text

    def _build_trees(self, grammar: Grammar):
        return ParseTreeBuilder(grammar, self.config.max_tree_depth, self.config.max_trees).build_trees()

    def _generate_samples(self, grammar: Grammar) -> List[str]:
        return SampleStringGenerator(grammar, self.config.sample_max_length, self.config.max_samples).generate()

    def _tree_payload(self, grammar: Grammar) -> Dict[str, Any]:
        trees = self._build_trees(grammar)
        return {
            'grammar': grammar_to_string(grammar),
            'trees': [tree.to_dict() for tree in trees],
            'trees_dot': self.visualizer.dot_generator.generate_forest_dot(trees),
            'samples': self._generate_samples(grammar)
        }

    def _failure(self, outcome: ParseOutcome) -> Dict[str, Any]:
        return {
            'success': False,
            'errors': errors_to_dicts(outcome.errors),
            'errors_html': self.visualizer.format_validation_errors(outcome.errors)
        }


# Example usage: python analysis_workflow.py grammar.txt
if __name__ == "__main__":
    if len(sys.argv) > 1:
        with open(sys.argv[1], encoding='utf-8') as handle:
            grammar_text = handle.read()
    else:
        grammar_text = "S -> if cond then S else S | if cond then S | other"

    print(GrammarAnalysisWorkflow().generate_report(grammar_text))
