# tests/test_cli.py
import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from glint.cli import main

DEMO_OUTPUT = """\
⚠ warning: `second` never used
⚠ warning: `label` never used
⚠ warning: `unused_flag` never used
⚠ warning: `inner` never used
✖ error: `inner` not defined
✖ error: `total` not defined
⚠ warning: `rest` never used
5 warnings, 2 errors
"""

class TestCli(unittest.TestCase):

    def run_main(self, argv):
        """Runs main and returns (exit status, stdout, stderr)."""
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            status = main(argv)
        return status, out.getvalue(), err.getvalue()

    def write_source(self, code):
        handle, path = tempfile.mkstemp(suffix=".gleam")
        with os.fdopen(handle, 'w', encoding='utf-8') as f:
            f.write(code)
        self.addCleanup(os.remove, path)
        return path

    def test_demo_module(self):
        status, out, err = self.run_main(["--no-color"])
        self.assertEqual(status, 1)
        self.assertEqual(out, DEMO_OUTPUT)
        self.assertNotIn("Error:", err)

    def test_demo_module_colored(self):
        status, out, _ = self.run_main([])
        self.assertEqual(status, 1)
        self.assertIn("\033[33m⚠ warning\033[0m", out)
        self.assertIn("\033[1m\033[91m✖ error\033[0m", out)

    def test_clean_file(self):
        path = self.write_source("pub fn main() {\n  Nil\n}\n")
        status, out, _ = self.run_main([path, "--no-color"])
        self.assertEqual(status, 0)
        self.assertEqual(out, "0 warnings, 0 errors\n")

    def test_warnings_only_exit_zero(self):
        path = self.write_source("fn f(x) {\n  Nil\n}\n")
        status, out, _ = self.run_main([path, "--no-color"])
        self.assertEqual(status, 0)
        self.assertEqual(out, "⚠ warning: `x` never used\n1 warning, 0 errors\n")

    def test_missing_file(self):
        status, out, err = self.run_main([os.path.join(tempfile.gettempdir(), "no_such_file.gleam")])
        self.assertEqual(status, 1)
        self.assertEqual(out, "")
        self.assertIn("Error: Input file not found", err)

    def test_parse_error(self):
        path = self.write_source("fn f() {\n  let = 1\n}\n")
        status, out, err = self.run_main([path])
        self.assertEqual(status, 1)
        self.assertEqual(out, "")
        self.assertIn("Error: Unexpected token in pattern", err)

    def test_log_level_flags(self):
        path = self.write_source("pub fn main() { Nil }")
        status, _, _ = self.run_main([path, "--no-color", "--semantic-log-level", "ERROR",
                                      "--lexer-log-level", "ERROR"])
        self.assertEqual(status, 0)

if __name__ == '__main__':
    unittest.main()
