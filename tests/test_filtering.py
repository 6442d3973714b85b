import unittest

from core.filtering import InvalidPattern, compile_pattern, filter_files
from core.types import FileRecord


def record(name, folder=""):
    path = f"{folder}/{name}"
    return FileRecord(id=f"id:{path}", name=name, path_lower=path.lower(), path_display=path)


FILES = [record("a.txt"), record("b_old.txt"), record("c_old.txt"), record("Report_old.TXT", "/docs")]


class TestFilterFiles(unittest.TestCase):
    def test_matches_subset_in_order(self):
        """Only matching names come back, in listing order."""
        result = filter_files(FILES, r"_old\.txt$")
        self.assertEqual([f.name for f in result], ["b_old.txt", "c_old.txt"])

    def test_always_matching_pattern_returns_input(self):
        self.assertEqual(filter_files(FILES, ".*"), FILES)

    def test_never_matching_pattern_returns_empty(self):
        self.assertEqual(filter_files(FILES, r"^zzz$"), [])

    def test_search_is_unanchored(self):
        """A bare fragment matches anywhere in the name."""
        result = filter_files(FILES, "old")
        self.assertEqual(len(result), 3)

    def test_matches_name_not_path(self):
        """The folder part of the path is not matched."""
        self.assertEqual(filter_files(FILES, "docs"), [])

    def test_compiled_pattern_flags_respected(self):
        pattern = compile_pattern(r"(?i)_old\.txt$")
        self.assertEqual(len(filter_files(FILES, pattern)), 3)

    def test_does_not_mutate_input(self):
        files = list(FILES)
        filter_files(files, "a")
        self.assertEqual(files, FILES)


class TestCompilePattern(unittest.TestCase):
    def test_invalid_pattern_raises(self):
        """A malformed regex raises InvalidPattern carrying the original text."""
        with self.assertRaises(InvalidPattern) as ctx:
            compile_pattern("([unclosed")
        self.assertEqual(ctx.exception.pattern, "([unclosed")
        self.assertIsInstance(ctx.exception, ValueError)

    def test_valid_pattern_compiles(self):
        self.assertTrue(compile_pattern(r"\.jpg$").search("photo.jpg"))


if __name__ == '__main__':
    unittest.main()
