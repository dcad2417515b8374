"""
Visualization and Output Formatting Module

This module turns analysis results into strings an external renderer can
display: HTML tables for FIRST/FOLLOW sets, DOT graphs for display trees and
HTML blocks for validation errors, ambiguity reasons and transformation
steps. Nothing here computes grammar properties.
"""

from typing import Dict, List, Tuple, Optional, Callable
from dataclasses import dataclass
import itertools
import html

from cfg_parser import Grammar, ValidationError, EPSILON, END_MARKER
from first_follow import FirstFollowSets, LL1Conflict
from ambiguity import AmbiguityResult, AmbiguityStatus
from transformer import TransformationResult
from parse_tree import ParseTreeNode


@dataclass
class VisualizationConfig:
    """Configuration options for visualization output."""
    table_css_classes: str = "first-follow-table"
    steps_css_classes: str = "transformation-steps"
    error_css_classes: str = "error-message"
    include_inline_styles: bool = True
    compact_mode: bool = False


STATUS_LABELS = {
    AmbiguityStatus.AMBIGUOUS: "Ambiguous",
    AmbiguityStatus.POSSIBLY_AMBIGUOUS: "Possibly Ambiguous",
    AmbiguityStatus.NONE_DETECTED: "No Ambiguity Detected",
}


def _format_set(values) -> str:
    """Sort a symbol set for display, keeping ε and $ at the end."""
    ordered = sorted(value for value in values if value not in (EPSILON, END_MARKER))
    for marker in (END_MARKER, EPSILON):
        if marker in values:
            ordered.append(marker)
    return '{ ' + ', '.join(ordered) + ' }'


class HTMLTableGenerator:
    """Generates HTML tables for FIRST/FOLLOW sets and LL(1) conflicts."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_first_follow_html(self, grammar: Grammar, sets: FirstFollowSets) -> str:
        """
        Generate an HTML table with one row per non-terminal.

        Rows follow the production order of the grammar so the table reads
        like the grammar text.

        Args:
            grammar: The analysed grammar
            sets: FIRST/FOLLOW sets computed for it

        Returns:
            HTML string containing the table
        """
        if not grammar.productions:
            return self._generate_empty_table_html("No non-terminals found")

        html_lines = []
        html_lines.append(f'<table class="grammar-table {self.config.table_css_classes}" role="table" aria-label="FIRST and FOLLOW sets">')
        html_lines.append('<thead>')
        html_lines.append('<tr>')
        html_lines.append('<th class="grammar-table-header grammar-table-header-primary" scope="col">Non-terminal</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">FIRST</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">FOLLOW</th>')
        html_lines.append('</tr>')
        html_lines.append('</thead>')
        html_lines.append('<tbody>')

        for head in grammar.productions:
            first = _format_set(sets.first.get(head, set()))
            follow = _format_set(sets.follow.get(head, set()))
            html_lines.append('<tr>')
            html_lines.append(f'<td class="grammar-table-cell grammar-table-cell-primary">{html.escape(head)}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(first)}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(follow)}</td>')
            html_lines.append('</tr>')

        html_lines.append('</tbody>')
        html_lines.append('</table>')

        return '\n'.join(html_lines)

    def generate_conflicts_html(self, conflicts: List[LL1Conflict]) -> str:
        if not conflicts:
            return '<div class="no-conflicts">No LL(1) conflicts detected in the grammar.</div>'

        html_lines = []
        html_lines.append('<table class="grammar-table ll1-conflicts" role="table" aria-label="LL(1) conflicts">')
        html_lines.append('<thead><tr>')
        html_lines.append('<th class="grammar-table-header" scope="col">Non-terminal</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Type</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Alternatives</th>')
        html_lines.append('<th class="grammar-table-header" scope="col">Symbols</th>')
        html_lines.append('</tr></thead>')
        html_lines.append('<tbody>')
        for conflict in conflicts:
            first_alt, second_alt = conflict.alternatives
            html_lines.append('<tr>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(conflict.head)}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(conflict.conflict_type)}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{first_alt}, {second_alt}</td>')
            html_lines.append(f'<td class="grammar-table-cell">{html.escape(", ".join(conflict.symbols))}</td>')
            html_lines.append('</tr>')
        html_lines.append('</tbody>')
        html_lines.append('</table>')

        return '\n'.join(html_lines)

    def _generate_empty_table_html(self, message: str) -> str:
        """Generate HTML for empty table with message."""
        return f'<div class="empty-table"><p>{html.escape(message)}</p></div>'


class DOTGenerator:
    """Generates DOT format output for display trees."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_parse_tree_dot(self, parse_tree: Optional[ParseTreeNode], title: str = "Parse Tree") -> str:
        """
        Generate compact DOT format representation of a display tree.

        Node names are numbered per call, so two trees rendered in one request
        never share counters.

        Args:
            parse_tree: ParseTreeNode object representing the root of the tree
            title: Title for the graph

        Returns:
            DOT format string
        """
        if not parse_tree:
            return self._generate_empty_tree_dot(title, "Parse tree is empty")

        ids = itertools.count()
        lines = []

        # Graph header with compact styling
        lines.append(f'digraph "{self._escape_dot_string(title)}" {{')
        lines.append('  rankdir=TB;')
        lines.append('  node [fontname="Arial", fontsize=12];')
        lines.append('  edge [fontsize=9, color="#333333"];')
        lines.append('  bgcolor=white;')
        lines.append('  splines=false;')
        lines.append('  nodesep=0.4;')
        lines.append('  ranksep=0.6;')

        dot_content, _ = self._generate_node_dot(parse_tree, lambda: next(ids))
        lines.append(dot_content)
        lines.append('}')

        return '\n'.join(lines)

    def generate_forest_dot(self, trees: List[ParseTreeNode], title: str = "Parse Trees") -> List[str]:
        return [self.generate_parse_tree_dot(tree, f"{title} {i}") for i, tree in enumerate(trees, 1)]

    def _generate_node_dot(self, node: ParseTreeNode, next_id: Callable[[], int]) -> Tuple[str, int]:
        """
        Generate DOT representation for a single node and its children.

        Returns:
            Tuple of (dot_string, node_number)
        """
        lines = []
        current_id = next_id()
        escaped_label = self._escape_dot_string(node.label)

        if node.is_terminal:
            # Terminal nodes: blue boxes
            lines.append(f'  node{current_id} [label="{escaped_label}", shape=box, style=filled, fillcolor="#e3f2fd", color="#1976d2", fontname="Courier New", fontsize=11];')
        elif node.children or self.config.compact_mode:
            # Expanded non-terminals: green circles
            lines.append(f'  node{current_id} [label="{escaped_label}", shape=circle, style=filled, fillcolor="#e8f5e8", color="#388e3c"];')
        else:
            # Non-terminals cut off by the depth bound
            lines.append(f'  node{current_id} [label="{escaped_label}", shape=circle, style="filled,dashed", fillcolor="#f5f5f5", color="#9e9e9e"];')

        for child in node.children:
            child_dot, child_id = self._generate_node_dot(child, next_id)
            lines.append(child_dot)
            lines.append(f'  node{current_id} -> node{child_id} [color="#666666", penwidth=1.0];')

        return '\n'.join(lines), current_id

    def _generate_empty_tree_dot(self, title: str, message: str) -> str:
        """Generate DOT for an empty or error tree."""
        lines = []
        lines.append(f'digraph "{self._escape_dot_string(title)}" {{')
        lines.append('  rankdir=TB;')
        lines.append('  node [fontname="Arial"];')
        lines.append(f'  empty [label="{self._escape_dot_string(message)}", shape=box, color=red];')
        lines.append('}')
        return '\n'.join(lines)

    def _escape_dot_string(self, text: str) -> str:
        """Escape a string for use in DOT format."""
        if not text:
            return ""

        text = str(text)
        text = text.replace('\\', '\\\\')
        text = text.replace('"', '\\"')
        text = text.replace('\n', '\\n')
        text = text.replace('\t', '\\t')
        text = text.replace('\r', '\\r')

        return text


class TransformationStepFormatter:
    """Formats transformation steps as HTML with before/after grammar text."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def generate_steps_html(self, result: TransformationResult, title: str = "Transformation Steps") -> str:
        if not result.success:
            return self._generate_empty_steps_html(result.explanation)

        html_lines = []
        html_lines.append(f'<div class="{self.config.steps_css_classes}">')
        html_lines.append(f'<h3>{html.escape(title)}</h3>')
        html_lines.append(f'<p class="steps-summary">{html.escape(result.explanation)}</p>')

        for i, step in enumerate(result.steps, 1):
            html_lines.append('<div class="transformation-step">')
            html_lines.append(f'<h4>Step {i}: {html.escape(step.name)}</h4>')
            html_lines.append(f'<p>{html.escape(step.description)}</p>')
            if not self.config.compact_mode:
                html_lines.append('<div class="step-grammars">')
                html_lines.append(f'<pre class="grammar-before">{html.escape(step.before)}</pre>')
                html_lines.append(f'<pre class="grammar-after">{html.escape(step.after)}</pre>')
                html_lines.append('</div>')
            html_lines.append('</div>')

        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def _generate_empty_steps_html(self, message: str) -> str:
        html_lines = []
        html_lines.append(f'<div class="{self.config.steps_css_classes} steps-empty">')
        html_lines.append(f'<p>{html.escape(message)}</p>')
        html_lines.append('</div>')
        return '\n'.join(html_lines)


class ErrorMessageFormatter:
    """Formats validation errors and ambiguity reports with proper styling."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()

    def format_validation_errors(self, errors: List[ValidationError]) -> str:
        """
        Format grammar validation errors as HTML.

        Args:
            errors: List of ValidationError objects

        Returns:
            Formatted HTML error report
        """
        if not errors:
            return '<div class="no-errors">No grammar errors found.</div>'

        html_lines = []

        if self.config.include_inline_styles:
            html_lines.append(self._generate_error_styles())

        html_lines.append(f'<div class="{self.config.error_css_classes}">')
        html_lines.append(f'<h4>Grammar Errors ({len(errors)} found)</h4>')
        html_lines.append('<ul>')
        for error in errors:
            location = f'Line {error.line}: ' if error.line else ''
            html_lines.append(f'<li class="error-text">{html.escape(location + error.message)}</li>')
        html_lines.append('</ul>')
        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def format_ambiguity_report(self, result: AmbiguityResult) -> str:
        """
        Format an ambiguity result as HTML.

        Args:
            result: AmbiguityResult from the detector

        Returns:
            Formatted HTML report, one block per reason
        """
        html_lines = []

        if self.config.include_inline_styles:
            html_lines.append(self._generate_error_styles())

        html_lines.append(f'<div class="ambiguity-report status-{result.status.value}">')
        html_lines.append(f'<h4>{html.escape(STATUS_LABELS[result.status])}</h4>')
        html_lines.append(f'<p class="explanation">{html.escape(result.explanation)}</p>')

        for i, reason in enumerate(result.reasons, 1):
            html_lines.append(f'<div class="reason-item severity-{reason.severity.value}">')
            html_lines.append(f'<h5>Reason {i}: {html.escape(reason.type)}</h5>')
            html_lines.append(f'<p><strong>Severity:</strong> {reason.severity.value}</p>')
            html_lines.append(f'<p><strong>Description:</strong> {html.escape(reason.description)}</p>')

            if reason.involved_rules:
                html_lines.append('<p><strong>Involved Rules:</strong></p>')
                html_lines.append('<ul>')
                for rule in reason.involved_rules:
                    html_lines.append(f'<li><code>{html.escape(rule)}</code></li>')
                html_lines.append('</ul>')

            html_lines.append('</div>')

        html_lines.append('</div>')

        return '\n'.join(html_lines)

    def _generate_error_styles(self) -> str:
        """Generate inline CSS styles for error and ambiguity blocks."""
        return """
<style>
.error-message {
    color: #cc0000;
    background-color: #ffeeee;
    border: 1px solid #cc0000;
    border-radius: 4px;
    padding: 10px;
    margin: 10px 0;
    font-family: Arial, sans-serif;
}

.error-text {
    font-weight: bold;
    margin: 5px 0;
}

.ambiguity-report {
    border-radius: 4px;
    padding: 10px;
    margin: 10px 0;
}

.status-ambiguous { background-color: #ffeeee; border: 1px solid #cc0000; }
.status-possibly-ambiguous { background-color: #fff8e1; border: 1px solid #ff9800; }
.status-no-ambiguity-detected { background-color: #e8f5e9; border: 1px solid #388e3c; }

.reason-item {
    margin: 10px 0;
    padding: 8px;
    background-color: #ffffff;
}

.severity-high { border-left: 3px solid #cc0000; }
.severity-medium { border-left: 3px solid #ff9800; }
.severity-low { border-left: 3px solid #1976d2; }
</style>
"""


class VisualizationGenerator:
    """Main visualization generator that combines all formatting capabilities."""

    def __init__(self, config: Optional[VisualizationConfig] = None):
        self.config = config or VisualizationConfig()
        self.table_generator = HTMLTableGenerator(self.config)
        self.dot_generator = DOTGenerator(self.config)
        self.steps_formatter = TransformationStepFormatter(self.config)
        self.error_formatter = ErrorMessageFormatter(self.config)

    def generate_complete_visualization(self,
                                        grammar: Grammar,
                                        first_follow: FirstFollowSets,
                                        conflicts: List[LL1Conflict],
                                        ambiguity: AmbiguityResult,
                                        transformation: TransformationResult,
                                        trees: List[ParseTreeNode]) -> Dict[str, object]:
        """
        Generate every visualization for one analysed grammar.

        Returns:
            Dictionary with keys: 'first_follow_html', 'conflicts_html',
            'ambiguity_html', 'steps_html', 'trees_dot'
        """
        return {
            'first_follow_html': self.table_generator.generate_first_follow_html(grammar, first_follow),
            'conflicts_html': self.table_generator.generate_conflicts_html(conflicts),
            'ambiguity_html': self.error_formatter.format_ambiguity_report(ambiguity),
            'steps_html': self.steps_formatter.generate_steps_html(transformation),
            'trees_dot': self.dot_generator.generate_forest_dot(trees),
        }

    def generate_parse_tree_dot(self, parse_tree: ParseTreeNode, title: str = "Parse Tree") -> str:
        """Generate DOT format for a display tree."""
        return self.dot_generator.generate_parse_tree_dot(parse_tree, title)

    def format_validation_errors(self, errors: List[ValidationError]) -> str:
        return self.error_formatter.format_validation_errors(errors)
