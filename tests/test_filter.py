"""
Tests for reducing a raw rsync listing to the @eaDir deletion queue.
"""
import unittest

from synoclean.operations.eadir_filter import (
    truncate_at_eadir, collect_eadirs, normalize_listing, join_remote,
)


class TestTruncateAtEadir(unittest.TestCase):

    def test_file_inside_eadir_reduces_to_directory(self):
        self.assertEqual(truncate_at_eadir("foo/@eaDir/thumbs/1.jpg"), "foo/@eaDir")

    def test_directory_entry_with_trailing_slash(self):
        """rsync prints directories with a trailing slash."""
        self.assertEqual(truncate_at_eadir("music/@eaDir/"), "music/@eaDir")

    def test_exact_segment_at_end(self):
        self.assertEqual(truncate_at_eadir("music/rock/@eaDir"), "music/rock/@eaDir")

    def test_first_segment(self):
        self.assertEqual(truncate_at_eadir("@eaDir/x.jpg"), "@eaDir")
        self.assertEqual(truncate_at_eadir("@eaDir"), "@eaDir")

    def test_substring_is_not_a_match(self):
        self.assertIsNone(truncate_at_eadir("foo/eaDirectory/bar"))
        self.assertIsNone(truncate_at_eadir("foo/my@eaDir/bar"))
        self.assertIsNone(truncate_at_eadir("foo/@eaDir2/bar"))
        self.assertIsNone(truncate_at_eadir("foo/@eadir/bar"))

    def test_plain_files_are_dropped(self):
        self.assertIsNone(truncate_at_eadir("music/a.flac"))
        self.assertIsNone(truncate_at_eadir("./"))

    def test_nested_eadir_truncates_at_the_outermost(self):
        self.assertEqual(truncate_at_eadir("a/@eaDir/b/@eaDir/c"), "a/@eaDir")

    def test_names_with_spaces_survive(self):
        self.assertEqual(truncate_at_eadir("My Music/Live Set/@eaDir/x"),
                         "My Music/Live Set/@eaDir")


class TestNormalizeListing(unittest.TestCase):

    def test_reference_scenario(self):
        raw = [
            "music/a.flac",
            "music/@eaDir/SYNOPHOTO_THUMB.jpg",
            "music/rock/@eaDir/x",
            "music/rock/@eaDir/y/z",
        ]
        self.assertEqual(
            normalize_listing(raw, "/data"),
            ["/data/music/@eaDir", "/data/music/rock/@eaDir"],
        )

    def test_sorted_and_deduplicated(self):
        raw = ["z/@eaDir/1", "a/@eaDir/2", "z/@eaDir/3", "a/@eaDir/"]
        self.assertEqual(normalize_listing(raw, "/v"), ["/v/a/@eaDir", "/v/z/@eaDir"])

    def test_no_entry_is_inside_another(self):
        raw = ["a/@eaDir/x", "a/@eaDir/b/@eaDir/y", "a/b/@eaDir", "a/b/@eaDir/c"]
        result = normalize_listing(raw, "/base")
        for p in result:
            for q in result:
                if p != q:
                    self.assertFalse(q.startswith(p + "/"), f"{q} is inside {p}")

    def test_trailing_slash_on_base_path(self):
        self.assertEqual(normalize_listing(["x/@eaDir"], "/data/"), ["/data/x/@eaDir"])

    def test_root_base_path(self):
        self.assertEqual(join_remote("/", "x/@eaDir"), "/x/@eaDir")

    def test_empty_listing(self):
        self.assertEqual(normalize_listing([], "/data"), [])

    def test_filtering_is_idempotent(self):
        raw = [
            "music/@eaDir/SYNOPHOTO_THUMB.jpg",
            "music/rock/@eaDir/y/z",
            "photos/eaDirectory/a",
            "photos/2020/@eaDir/",
            "@eaDir/top.jpg",
        ]
        once = collect_eadirs(raw)
        twice = collect_eadirs(once)
        self.assertEqual(once, twice)

    def test_accepts_a_lazy_iterable(self):
        lines = (line for line in ["a/@eaDir/1", "b/c.txt"])
        self.assertEqual(normalize_listing(lines, "/d"), ["/d/a/@eaDir"])


if __name__ == "__main__":
    unittest.main()
