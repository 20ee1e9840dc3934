"""
Tests for collision-free export naming.

- "{stem} ({n}).{ext}" when the name has an extension, "{stem} ({n})" otherwise
- The split happens at the last dot
- Numbering starts at 2 (the unmodified name is attempt 1)
"""

import unittest

from src.backend.fs.naming import (
    INITIAL_RENAME_COUNT,
    candidate_names,
    resolve_collision_name,
    sanitize_display_name,
    split_name,
)


class TestResolveCollisionName(unittest.TestCase):
    def test_name_with_extension(self):
        self.assertEqual(resolve_collision_name("report.pdf", 2), "report (2).pdf")

    def test_name_without_extension(self):
        self.assertEqual(resolve_collision_name("README", 2), "README (2)")

    def test_splits_at_last_dot(self):
        self.assertEqual(resolve_collision_name("backup.tar.gz", 3), "backup.tar (3).gz")

    def test_leading_dot_is_an_extension_separator(self):
        self.assertEqual(resolve_collision_name(".bashrc", 2), " (2).bashrc")

    def test_trailing_dot_keeps_empty_extension(self):
        self.assertEqual(resolve_collision_name("notes.", 2), "notes (2).")

    def test_suffix_property_holds_for_many_attempts(self):
        for n in (2, 3, 9, 10, 999):
            with self.subTest(n=n):
                with_ext = resolve_collision_name("photo.jpg", n)
                self.assertTrue(with_ext.endswith(f"({n}).jpg"))

                without_ext = resolve_collision_name("Makefile", n)
                self.assertTrue(without_ext.endswith(f"({n})"))
                self.assertNotIn(".", without_ext)

    def test_attempt_below_initial_count_is_rejected(self):
        with self.assertRaisesRegex(ValueError, "attempt must be >= 2"):
            resolve_collision_name("a.txt", 1)

    def test_is_deterministic(self):
        self.assertEqual(
            resolve_collision_name("a.b.c", 5),
            resolve_collision_name("a.b.c", 5),
        )


class TestSplitName(unittest.TestCase):
    def test_split_with_extension(self):
        parts = split_name("archive.tar.gz")
        self.assertEqual(parts.stem, "archive.tar")
        self.assertEqual(parts.extension, "gz")

    def test_split_without_extension(self):
        parts = split_name("LICENSE")
        self.assertEqual(parts.stem, "LICENSE")
        self.assertEqual(parts.extension, "")


class TestCandidateNames(unittest.TestCase):
    def test_first_candidate_is_unmodified_name(self):
        first = next(candidate_names("a.txt"))
        self.assertEqual(first, (1, "a.txt"))

    def test_candidates_are_bounded(self):
        names = list(candidate_names("a.txt", max_attempts=4))
        self.assertEqual(
            names,
            [(1, "a.txt"), (2, "a (2).txt"), (3, "a (3).txt"), (4, "a (4).txt")],
        )

    def test_numbering_starts_at_initial_count(self):
        names = list(candidate_names("x", max_attempts=2))
        self.assertEqual(names[1][0], INITIAL_RENAME_COUNT)

    def test_zero_attempts_yields_nothing(self):
        self.assertEqual(list(candidate_names("a.txt", max_attempts=0)), [])


class TestSanitizeDisplayName(unittest.TestCase):
    def test_path_separators_are_replaced(self):
        self.assertEqual(sanitize_display_name("../../etc/passwd"), ".._.._etc_passwd")
        self.assertEqual(sanitize_display_name("a\\b.txt"), "a_b.txt")

    def test_names_referring_to_folder_are_replaced(self):
        for name in ("", ".", "..", "   "):
            with self.subTest(name=name):
                self.assertEqual(sanitize_display_name(name), "_")

    def test_ordinary_name_is_unchanged(self):
        self.assertEqual(sanitize_display_name("Quarterly report (final).pdf"), "Quarterly report (final).pdf")


if __name__ == "__main__":
    unittest.main()
