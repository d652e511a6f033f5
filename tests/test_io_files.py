import os
import tempfile
import unittest

from config import CFG
from io_files import write_results, write_results_view_html
from models import ComplementGroup


class WriteOutputsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self._orig_results = CFG.RESULTS_OUT
        self._orig_html = CFG.RESULTS_HTML

    def tearDown(self) -> None:
        CFG.RESULTS_OUT = self._orig_results
        CFG.RESULTS_HTML = self._orig_html

    def test_write_results_uses_configured_relative_path(self) -> None:
        CFG.RESULTS_OUT = "outputs/custom_results.txt"
        groups = [ComplementGroup((1, 2), ("b1", "c2"))]

        path = write_results(groups, self.tmpdir.name)

        expected = os.path.join(self.tmpdir.name, "outputs", "custom_results.txt")
        self.assertEqual(path, expected)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertEqual(
            contents,
            'Complementary lines results:\n["b1","c2"]; <-- lines:  2 3\n',
        )

    def test_write_results_without_groups(self) -> None:
        CFG.RESULTS_OUT = "results.txt"

        path = write_results([], self.tmpdir.name)

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertEqual(contents, "Complementary lines results:\nNo results.\n")

    def test_write_results_view_html_accepts_absolute_path(self) -> None:
        target = os.path.join(self.tmpdir.name, "html", "view.html")
        CFG.RESULTS_HTML = target

        table = "<table></table>"
        legend = "<li>line 1</li>"

        path = write_results_view_html(table, legend, self.tmpdir.name, summary="1 <group>")

        self.assertEqual(path, target)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn(table, contents)
        self.assertIn(legend, contents)
        self.assertIn("1 &lt;group&gt;", contents)


if __name__ == "__main__":
    unittest.main()
