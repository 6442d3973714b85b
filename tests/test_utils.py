import io
import os
import tempfile
import unittest
from unittest.mock import MagicMock

from logger_setup import format_api_error, setup_logger
from utils import ProgressBar, chunk, get_unique_path


class TestChunk(unittest.TestCase):
    def test_even_and_remainder(self):
        self.assertEqual(chunk([1, 2, 3, 4, 5], 2), [[1, 2], [3, 4], [5]])

    def test_empty(self):
        self.assertEqual(chunk([], 25), [])

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            chunk([1], 0)


class TestUniquePath(unittest.TestCase):
    def test_unused_path_unchanged(self):
        self.assertEqual(get_unique_path("/nonexistent/dir/a.jpg"), "/nonexistent/dir/a.jpg")

    def test_taken_paths_get_suffix(self):
        taken = {"/x/a.jpg", "/x/a_copy1.jpg"}
        self.assertEqual(get_unique_path("/x/a.jpg", taken), "/x/a_copy2.jpg")

    def test_existing_file_gets_suffix(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "a.jpg")
            open(path, "wb").close()
            self.assertEqual(get_unique_path(path), os.path.join(tmp, "a_copy1.jpg"))


class TestProgressBar(unittest.TestCase):
    def test_update_and_finish(self):
        stream = io.StringIO()
        bar = ProgressBar("Fetching", total=4, stream=stream)
        bar.update(2)
        bar.finish("All done")

        output = stream.getvalue()
        self.assertIn("Fetching: 2/4", output)
        self.assertIn("All done", output)


class TestLoggerSetup(unittest.TestCase):
    def test_file_and_console_handlers(self):
        with tempfile.TemporaryDirectory() as tmp:
            logger, log_file = setup_logger("dpc_test_logger", log_prefix="unit", log_dir=tmp)
            try:
                self.assertEqual(len(logger.handlers), 2)
                self.assertTrue(os.path.basename(log_file).startswith("unit_"))
                logger.getChild("child").debug("hello from child")
                for handler in logger.handlers:
                    handler.flush()
                with open(log_file, encoding="utf-8") as f:
                    self.assertIn("hello from child", f.read())
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

    def test_format_plain_exception(self):
        self.assertEqual(format_api_error(ValueError("bad")), "ValueError: bad")

    def test_format_api_error_details(self):
        err = MagicMock()
        err.is_path.return_value = True
        err.get_path.return_value.is_not_found.return_value = True
        exc = MagicMock(error=err, user_message_text=None, request_id="req-9")

        message = format_api_error(exc)

        self.assertIn("Request ID: req-9", message)
        self.assertIn("not_found", message)


if __name__ == '__main__':
    unittest.main()
