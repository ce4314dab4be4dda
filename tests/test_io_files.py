import os
import tempfile
import unittest

from config import CFG
from io_files import format_solutions, write_layout_view_html, write_solutions
from models import Solution
from render import render_text


class WriteOutputsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self._orig_solutions = CFG.SOLUTIONS_OUT
        self._orig_layout = CFG.LAYOUT_HTML

    def tearDown(self) -> None:
        CFG.SOLUTIONS_OUT = self._orig_solutions
        CFG.LAYOUT_HTML = self._orig_layout

    def test_write_solutions_uses_configured_relative_path(self) -> None:
        CFG.SOLUTIONS_OUT = "outputs/custom_solutions.txt"
        solutions = [
            Solution(3, 1, ((1, 1, 2),), ("AAB",)),
            Solution(3, 1, ((2, 1, 1),), ("BAA",)),
        ]

        path = write_solutions(solutions, self.tmpdir.name)

        expected = os.path.join(self.tmpdir.name, "outputs", "custom_solutions.txt")
        self.assertEqual(path, expected)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertEqual(contents, "# 1\nAAB\n\n# 2\nBAA\n")

    def test_format_solutions_uses_text_rendering(self) -> None:
        sol = Solution(2, 2, ((1, 1), (2, 2)), ("DD", "EE"))

        self.assertEqual(render_text(sol), "DD\nEE")
        self.assertEqual(format_solutions([sol]), "# 1\n" + render_text(sol) + "\n")

    def test_write_solutions_marks_empty_result(self) -> None:
        CFG.SOLUTIONS_OUT = os.path.join(self.tmpdir.name, "none.txt")

        path = write_solutions([], self.tmpdir.name)

        with open(path, "r", encoding="utf-8") as fh:
            self.assertEqual(fh.read(), "No solution\n")

    def test_write_layout_view_html_accepts_absolute_path(self) -> None:
        target = os.path.join(self.tmpdir.name, "html", "layout.html")
        CFG.LAYOUT_HTML = target

        svg = "<svg></svg>"
        legend = "<li>U</li>"

        path = write_layout_view_html(svg, legend, self.tmpdir.name, title="tetromino-5x4")

        self.assertEqual(path, target)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn(svg, contents)
        self.assertIn(legend, contents)
        self.assertIn("<title>tetromino-5x4</title>", contents)


if __name__ == "__main__":
    unittest.main()
