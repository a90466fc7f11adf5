import unittest

from asset_bundler.bundle.retry import RetryExhaustedError, retry_async


class RetryAsyncTests(unittest.IsolatedAsyncioTestCase):
    async def test_returns_first_success(self) -> None:
        calls = []

        async def operation() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise RuntimeError("transient")
            return "ok"

        result = await retry_async(operation, attempts=5)

        self.assertEqual(result, "ok")
        self.assertEqual(len(calls), 3)

    async def test_collects_every_failure_when_exhausted(self) -> None:
        calls = []

        async def operation() -> None:
            calls.append(1)
            raise RuntimeError(f"failure {len(calls)}")

        with self.assertRaises(RetryExhaustedError) as ctx:
            await retry_async(operation, attempts=5)

        self.assertEqual(len(calls), 5)
        self.assertEqual(ctx.exception.attempts, 5)
        self.assertEqual(len(ctx.exception.errors), 5)
        self.assertEqual(str(ctx.exception.last_error), "failure 5")

    async def test_unlisted_errors_propagate_immediately(self) -> None:
        calls = []

        async def operation() -> None:
            calls.append(1)
            raise KeyError("fatal")

        with self.assertRaises(KeyError):
            await retry_async(operation, attempts=5, retry_on=(RuntimeError,))
        self.assertEqual(len(calls), 1)

    async def test_rejects_zero_attempts(self) -> None:
        async def operation() -> None:
            return None

        with self.assertRaises(ValueError):
            await retry_async(operation, attempts=0)


if __name__ == "__main__":
    unittest.main()
