import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pydantic import ValidationError

from asset_bundler.config import ConfigLoadRequest, YamlConfigLoader


class YamlConfigLoaderTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.yaml_path = Path(self._tmp.name) / "config.yaml"

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    async def load(self, text: str):
        self.yaml_path.write_text(text, encoding="utf-8")
        request = ConfigLoadRequest(yaml_path=str(self.yaml_path), dotenv_path=None)
        return await YamlConfigLoader().load(request)

    async def test_empty_file_uses_defaults(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            config = await self.load("")

        self.assertEqual(config.server.port, 1662)
        self.assertEqual(config.github.excluded_tag, "v1998")
        self.assertEqual(config.bundle.fetch_concurrency, 16)
        self.assertEqual(config.bundle.fetch_attempts, 5)
        self.assertEqual(config.bundle.compression_level, 9)

    async def test_yaml_values_are_applied(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            config = await self.load("bundle:\n  cache_dir: /tmp/bundles\n  fetch_concurrency: 3\n")

        self.assertEqual(config.bundle.cache_dir, "/tmp/bundles")
        self.assertEqual(config.bundle.fetch_concurrency, 3)

    async def test_env_overrides_win(self) -> None:
        env = {"BUNDLER__BUNDLE__FETCH_ATTEMPTS": "7", "BUNDLER__GITHUB__MIRROR_PREFIX": ""}
        with mock.patch.dict("os.environ", env, clear=True):
            config = await self.load("bundle:\n  fetch_attempts: 2\n")

        self.assertEqual(config.bundle.fetch_attempts, 7)
        self.assertEqual(config.github.mirror_prefix, "")

    async def test_unknown_env_key_is_rejected(self) -> None:
        with mock.patch.dict("os.environ", {"BUNDLER__BUNDLE__NOPE": "1"}, clear=True):
            with self.assertRaises(KeyError):
                await self.load("")

    async def test_unknown_yaml_key_is_rejected(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(ValidationError):
                await self.load("bundle:\n  unknown: 1\n")

    async def test_invalid_values_are_rejected(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(ValidationError):
                await self.load("bundle:\n  fetch_concurrency: 0\n")


if __name__ == "__main__":
    unittest.main()
