# tests/test_semantic_analyzer.py
import unittest
from dataclasses import dataclass

from glint.diagnostics import Diagnostic
from glint.gl_ast import (ASTNode, Assignment, ExpressionStatement, Function, Int, Module,
                          PatternVariable, Variable, Visibility)
from glint.parser import parse_source
from glint.semantic_analyzer import AnalysisError, SemanticAnalyzer, analyze

def W(name):
    return Diagnostic.warning(f"`{name}` never used")

def E(name):
    return Diagnostic.error(f"`{name}` not defined")

@dataclass
class Mystery(ASTNode):
    """A node kind the checker has no rule for."""
    name: str

class TestSemanticAnalyzer(unittest.TestCase):

    def assert_diagnostics(self, code, expected):
        """Parses and checks code, comparing the diagnostics in order."""
        diagnostics = analyze(parse_source(code))
        self.assertEqual(diagnostics, expected, f"Code:\n{code}")

    # --- Scenarios ---

    def test_unused_parameter_and_local(self):
        self.assert_diagnostics("fn f(x) {\n  let y = 1\n}", [W("y"), W("x")])

    def test_undefined_reference(self):
        self.assert_diagnostics("pub fn main() {\n  missing\n}", [E("missing")])

    def test_block_local_out_of_scope(self):
        code = """
pub fn main() {
  let outer = 1
  outer
  {
    let inner = 2
    Nil
  }
  inner
}
"""
        self.assert_diagnostics(code, [W("inner"), E("inner")])

    def test_destructuring_one_name_used(self):
        self.assert_diagnostics("pub fn main() {\n  let #(a, b) = #(1, 2)\n  a\n}", [W("b")])

    # --- Functions ---

    def test_function_can_reference_itself(self):
        self.assert_diagnostics("pub fn loop() {\n  loop\n}", [])

    def test_unreferenced_private_function_is_not_reported(self):
        self.assert_diagnostics("fn helper() {\n  Nil\n}", [])

    def test_earlier_function_is_visible(self):
        self.assert_diagnostics("pub fn first() { Nil }\npub fn second() { first }", [])

    def test_later_function_is_not_yet_defined(self):
        self.assert_diagnostics("pub fn first() { second }\npub fn second() { Nil }", [E("second")])

    def test_diagnostics_follow_function_order(self):
        self.assert_diagnostics("fn f(a) { Nil }\nfn g(b) { Nil }", [W("a"), W("b")])

    def test_discarded_parameter_is_not_bound(self):
        self.assert_diagnostics("pub fn f(_x) { Nil }", [])

    def test_labelled_parameter_binds_its_name(self):
        self.assert_diagnostics("pub fn f(with name) { name }", [])

    def test_parameter_shadowed_by_local(self):
        self.assert_diagnostics("fn f(x) {\n  let x = 1\n  x\n}", [W("x")])

    # --- Scoping ---

    def test_shadowing_in_block(self):
        code = "pub fn main() {\n  let x = 1\n  {\n    let x = 2\n    x\n  }\n}"
        self.assert_diagnostics(code, [W("x")])

    def test_inner_unused_outer_used(self):
        code = "pub fn main() {\n  let x = 1\n  x\n  {\n    let x = 2\n    Nil\n  }\n}"
        self.assert_diagnostics(code, [W("x")])

    def test_block_diagnostics_interleave_with_references(self):
        code = "pub fn main() {\n  {\n    let a = 1\n    Nil\n  }\n  missing\n}"
        self.assert_diagnostics(code, [W("a"), E("missing")])

    def test_redeclaration_replaces_binding(self):
        self.assert_diagnostics("pub fn main() {\n  let a = 1\n  a\n  let a = 2\n}", [W("a")])

    def test_undefined_then_unused(self):
        self.assert_diagnostics("pub fn main() {\n  let a = 1\n  b\n}", [E("b"), W("a")])

    # --- Patterns ---

    def test_pattern_alias(self):
        code = "pub fn main(p) {\n  let #(a, _) as pair = p\n  pair\n}"
        self.assert_diagnostics(code, [W("a"), W("p")])

    def test_list_pattern_with_tail(self):
        self.assert_diagnostics("pub fn main() {\n  let [h, ..t] = [1]\n  t\n}", [W("h")])

    def test_use_binds_patterns(self):
        self.assert_diagnostics("pub fn main() {\n  use a, b <- f()\n  a\n}", [W("b")])

    def test_non_binding_patterns(self):
        code = 'pub fn main() {\n  let assert Ok(x) = r\n  let assert "s" = m\n  let _ = 1\n}'
        self.assert_diagnostics(code, [])

    # --- Expressions ---

    def test_negation_and_tuple_references(self):
        code = """
pub fn main() {
  let a = 1
  let b = True
  let c = 2
  !b
  #(c, -a, d)
}
"""
        self.assert_diagnostics(code, [E("d")])

    def test_assignment_value_is_not_checked(self):
        code = "pub fn main() {\n  let a = 1\n  let b = a\n  let c = missing\n  b\n  c\n}"
        self.assert_diagnostics(code, [W("a")])

    def test_unsupported_expressions_are_inert(self):
        code = "pub fn main() {\n  let a = 1\n  f(a)\n  a + 1\n  case a { y -> y }\n  fn(z) { a }\n}"
        self.assert_diagnostics(code, [W("a")])

    # --- Entry point ---

    def test_repeated_runs_are_independent(self):
        module = parse_source("fn f(x) { y }")
        first = analyze(module)
        second = analyze(module)
        self.assertEqual(first, [E("y"), W("x")])
        self.assertEqual(first, second)
        self.assertIsNot(first, second)

    def test_analyzer_is_single_use(self):
        analyzer = SemanticAnalyzer()
        analyzer.analyze(Module())
        with self.assertRaises(AnalysisError):
            analyzer.analyze(Module())

    def test_hand_built_module(self):
        body = [Assignment(PatternVariable("n"), Int("1")), ExpressionStatement(Variable("m"))]
        module = Module([Function("main", Visibility.PUBLIC, [], body)])
        self.assertEqual(analyze(module), [E("m"), W("n")])

    def test_unknown_node_raises(self):
        body = [ExpressionStatement(Mystery("?").set_pos(3, 4))]
        module = Module([Function("main", Visibility.PUBLIC, [], body)])
        with self.assertRaises(AnalysisError) as cm:
            analyze(module)
        self.assertIn("Mystery", str(cm.exception))
        self.assertIn("(at 3:4)", str(cm.exception))

    def test_scopes_closed_on_internal_error(self):
        body = [Assignment(PatternVariable("a"), Int("1")), ExpressionStatement(Mystery("?"))]
        module = Module([Function("main", Visibility.PUBLIC, [], body)])
        analyzer = SemanticAnalyzer()
        with self.assertRaises(AnalysisError):
            analyzer.analyze(module)
        self.assertEqual(len(analyzer.state.scopes), 0)
        self.assertEqual(analyzer.state.diagnostics, [W("a")])

if __name__ == '__main__':
    unittest.main()
