import os
import sys
import traceback
from flask import Flask, request, jsonify, Response

from analysis_workflow import GrammarAnalysisWorkflow, AnalysisConfig, InvalidOptionsError

app = Flask(__name__)

# --- Server settings ---
SERVER_HOST = os.environ.get('CFG_SERVER_HOST', '127.0.0.1')
SERVER_PORT = int(os.environ.get('CFG_SERVER_PORT', '5000'))

# --- HTML Escape Helper ---
def escapeHtml(unsafe):
    if unsafe is None: return ''
    unsafe = str(unsafe)
    return unsafe.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;').replace('"', '&quot;').replace("'", '&#039;')

# --- Request Helpers ---
def read_request():
    """Return (cfg_text, options) from the JSON body."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, None
    return data.get('cfg'), data.get('options')

def build_workflow(options):
    return GrammarAnalysisWorkflow(AnalysisConfig.from_options(options))

def grammar_error_response(result):
    print(f"--- Grammar Validation FAILED ({len(result['errors'])} errors) ---", file=sys.stderr)
    for error in result['errors']:
        print(f"Line {error['line']}: {error['message']}", file=sys.stderr)
    return jsonify({
        "success": False,
        "error": "Grammar has errors",
        "error_type": "grammar_error",
        "errors": result['errors'],
        "errors_html": result['errors_html']
    }), 400

def invalid_options_response(e):
    print(f"--- Invalid Options: {e} ---", file=sys.stderr)
    return jsonify({"error": escapeHtml(str(e)), "error_type": "options_error"}), 400

def unexpected_error_response(e):
    print(f"--- UNEXPECTED Python Error: {e} ---", file=sys.stderr)
    traceback.print_exc(file=sys.stderr)
    error_message = f"Unexpected server error: {escapeHtml(str(e))}"
    return jsonify({"error": error_message, "error_type": "system_error"}), 500

# --- Flask Endpoints ---

@app.route('/validate-grammar', methods=['POST'])
def validate_grammar():
    """
    Parse CFG input and return its productions, start symbol and symbol sets.

    Validation errors are returned together, one entry per problem.
    """
    cfg_input, options = read_request()
    if not cfg_input:
        return jsonify({"error": "No CFG provided"}), 400

    try:
        print("--- Validating Grammar ---", file=sys.stderr)
        result = build_workflow(options).validate(cfg_input)

        if not result['success']:
            return grammar_error_response(result)

        print("--- Grammar Validation SUCCEEDED ---", file=sys.stderr)
        print(f"Found {result['production_count']} productions", file=sys.stderr)
        print(f"Start symbol: {result['start_symbol']}", file=sys.stderr)
        return jsonify(result)

    except InvalidOptionsError as e:
        return invalid_options_response(e)

    except Exception as e:
        return unexpected_error_response(e)

@app.route('/analyze-grammar', methods=['POST'])
def analyze_grammar():
    """
    Run the full analysis: FIRST/FOLLOW sets, LL(1) conflicts, unreachable
    non-terminals, ambiguity heuristics, transformation, trees and samples.
    """
    cfg_input, options = read_request()
    if not cfg_input:
        return jsonify({"error": "No CFG provided"}), 400

    try:
        print("--- Analyzing Grammar ---", file=sys.stderr)
        result = build_workflow(options).analyze(cfg_input)

        if not result['success']:
            return grammar_error_response(result)

        print("--- Grammar Analysis SUCCEEDED ---", file=sys.stderr)
        print(f"Ambiguity status: {result['ambiguity']['status']}", file=sys.stderr)
        print(f"Reasons: {len(result['ambiguity']['reasons'])}", file=sys.stderr)
        print(f"LL(1) conflicts: {len(result['ll1_conflicts'])}", file=sys.stderr)
        print(f"Transformations applied: {len(result['transformation']['steps'])}", file=sys.stderr)
        return jsonify(result)

    except InvalidOptionsError as e:
        return invalid_options_response(e)

    except Exception as e:
        return unexpected_error_response(e)

@app.route('/transform-grammar', methods=['POST'])
def transform_grammar():
    """Run the rewrite pipeline and return the converted grammar with its step log."""
    cfg_input, options = read_request()
    if not cfg_input:
        return jsonify({"error": "No CFG provided"}), 400

    try:
        print("--- Transforming Grammar ---", file=sys.stderr)
        result = build_workflow(options).transform(cfg_input)

        if not result['success']:
            return grammar_error_response(result)

        if result['transformation']['success']:
            print("--- Transformation SUCCEEDED ---", file=sys.stderr)
            print(f"Steps: {len(result['transformation']['steps'])}", file=sys.stderr)
        else:
            print("--- No Applicable Transformation ---", file=sys.stderr)
        return jsonify(result)

    except InvalidOptionsError as e:
        return invalid_options_response(e)

    except Exception as e:
        return unexpected_error_response(e)

@app.route('/parse-trees', methods=['POST'])
def parse_trees():
    """
    Build display trees and sample strings for the grammar and, when a
    transformation applies, for the converted grammar too.
    """
    cfg_input, options = read_request()
    if not cfg_input:
        return jsonify({"error": "No CFG provided"}), 400

    try:
        print("--- Building Parse Trees ---", file=sys.stderr)
        result = build_workflow(options).parse_trees(cfg_input)

        if not result['success']:
            return grammar_error_response(result)

        print("--- Parse Tree Building SUCCEEDED ---", file=sys.stderr)
        print(f"Trees: {len(result['original']['trees'])}", file=sys.stderr)
        return jsonify(result)

    except InvalidOptionsError as e:
        return invalid_options_response(e)

    except Exception as e:
        return unexpected_error_response(e)

@app.route('/export-report', methods=['POST'])
def export_report():
    """Return the plain-text analysis report as a download."""
    cfg_input, options = read_request()
    if not cfg_input:
        return jsonify({"error": "No CFG provided"}), 400

    try:
        print("--- Exporting Report ---", file=sys.stderr)
        report = build_workflow(options).generate_report(cfg_input)
        return Response(
            report,
            mimetype='text/plain',
            headers={'Content-Disposition': 'attachment; filename=cfg-analysis-report.txt'}
        )

    except InvalidOptionsError as e:
        return invalid_options_response(e)

    except Exception as e:
        return unexpected_error_response(e)

# --- Main Execution ---
if __name__ == '__main__':
    print("--- CFG Ambiguity Analyzer Server ---")
    print(f"Running on http://{SERVER_HOST}:{SERVER_PORT}")
    print("-" * 37)
    app.run(host=SERVER_HOST, port=SERVER_PORT, debug=False)
