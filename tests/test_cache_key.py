import hashlib
import unittest

from asset_bundler.bundle.cache_key import artifact_name, derive_cache_key, sanitize_artifact_name
from asset_bundler.bundle.models import CacheKey
from asset_bundler.core.ports import string_to_unreserved_port


class DeriveCacheKeyTests(unittest.TestCase):
    def test_same_list_yields_same_digest(self) -> None:
        files = ["audio/a.mp3", "image/b.png"]
        self.assertEqual(derive_cache_key(files), derive_cache_key(list(files)))

    def test_digest_is_sha256_of_concatenated_names(self) -> None:
        key = derive_cache_key(["a", "b", "c"])
        self.assertEqual(key.digest_hex, hashlib.sha256(b"abc").hexdigest())
        self.assertEqual(len(key.digest_hex), 64)
        self.assertEqual(key.digest_hex, key.digest_hex.lower())

    def test_order_sensitive(self) -> None:
        # Same files in a different order are deliberately distinct bundles.
        self.assertNotEqual(
            derive_cache_key(["audio/a.mp3", "image/b.png"]),
            derive_cache_key(["image/b.png", "audio/a.mp3"]),
        )

    def test_duplicates_change_the_key(self) -> None:
        self.assertNotEqual(derive_cache_key(["a.txt"]), derive_cache_key(["a.txt", "a.txt"]))

    def test_none_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            derive_cache_key(None)  # type: ignore[arg-type]


class ArtifactNameTests(unittest.TestCase):
    def test_version_separators_are_sanitized(self) -> None:
        name = artifact_name("o", "r", "a/b?c", CacheKey("deadbeef"))
        self.assertEqual(name, "noname-asset-o-r-a-b-c-deadbeef.zip")

    def test_whole_name_is_sanitized(self) -> None:
        name = artifact_name('o:w"n', "r<e>p|o", "v1.0*", CacheKey("00"))
        self.assertEqual(name, "noname-asset-o-w-n-r-e-p-o-v1.0--00.zip")

    def test_every_unsafe_character_is_replaced(self) -> None:
        self.assertEqual(sanitize_artifact_name('/\\?%*:|"<>'), "-" * 10)


class PortTests(unittest.TestCase):
    def test_default_port_for_noname(self) -> None:
        self.assertEqual(string_to_unreserved_port("noname"), 1662)

    def test_port_is_above_reserved_range(self) -> None:
        self.assertGreaterEqual(string_to_unreserved_port(""), 1024)
        self.assertLess(string_to_unreserved_port("z" * 1000), 65535)


if __name__ == "__main__":
    unittest.main()
