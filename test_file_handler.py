import unittest
from file_handler import FileHandlerError, SimulatedFileSystem


class TestSimulatedFileSystem(unittest.TestCase):
    def setUp(self):
        self.uploads = {"scores.txt": "10\n20\n30\n"}
        self.fs = SimulatedFileSystem(upload_handler=self.uploads.get)

    def test_read_uploaded_lines_in_order(self):
        """READ buffers the uploaded text and returns one line per call."""
        self.assertEqual(self.fs.open("scores.txt", "READ"),
                         "Opened file 'scores.txt' in READ mode")
        self.assertEqual([self.fs.read_line("scores.txt") for _ in range(3)],
                         ["10", "20", "30"])
        self.assertTrue(self.fs.eof("scores.txt"))

    def test_read_past_end(self):
        """Reading beyond the last line is an error."""
        self.fs.open("scores.txt", "READ")
        for _ in range(3):
            self.fs.read_line("scores.txt")
        with self.assertRaises(FileHandlerError):
            self.fs.read_line("scores.txt")

    def test_missing_upload(self):
        """A READ of a file the host cannot supply fails."""
        with self.assertRaises(FileHandlerError) as cm:
            self.fs.open("other.txt", "READ")
        self.assertIn("'other.txt' was not provided", str(cm.exception))

    def test_no_upload_handler(self):
        """Without an upload handler nothing can be opened for READ."""
        fs = SimulatedFileSystem()
        with self.assertRaises(FileHandlerError) as cm:
            fs.open("x", "READ")
        self.assertIn("No file upload handler available", str(cm.exception))

    def test_double_open(self):
        """At most one open handle per filename."""
        self.fs.open("out", "WRITE")
        with self.assertRaises(FileHandlerError) as cm:
            self.fs.open("out", "APPEND")
        self.assertIn("already open", str(cm.exception))

    def test_write_overwrites_previous_content(self):
        """WRITE starts an empty buffer even when one is resident."""
        self.fs.open("out", "WRITE")
        self.fs.write_line("out", "old")
        self.fs.close("out")
        self.fs.open("out", "WRITE")
        self.fs.write_line("out", "new")
        self.assertEqual(self.fs.get_content("out"), "new")

    def test_append_continues_closed_buffer(self):
        """APPEND picks up a closed WRITE buffer."""
        self.fs.open("log", "WRITE")
        self.fs.write_line("log", "a")
        self.assertEqual(self.fs.close("log"), "Closed file 'log' (1 lines written)")
        self.fs.open("log", "APPEND")
        self.fs.write_line("log", "b")
        self.fs.close("log")
        self.assertEqual(self.fs.get_content("log"), "a\nb")
        self.assertEqual(self.fs.list_files(), [("log", "APPEND", 2)])

    def test_close_read_removes_handle(self):
        """Closing a READ handle drops it from the table."""
        self.fs.open("scores.txt", "READ")
        self.assertEqual(self.fs.close("scores.txt"), "Closed file 'scores.txt'")
        self.assertIsNone(self.fs.get_content("scores.txt"))

    def test_mode_checks(self):
        """WRITEFILE needs a write handle and READFILE/EOF need a read handle."""
        self.fs.open("scores.txt", "READ")
        self.fs.open("out", "WRITE")
        with self.assertRaises(FileHandlerError):
            self.fs.write_line("scores.txt", "x")
        with self.assertRaises(FileHandlerError):
            self.fs.read_line("out")
        with self.assertRaises(FileHandlerError):
            self.fs.eof("out")

    def test_operations_need_open_file(self):
        """Using a file that was never opened fails."""
        with self.assertRaises(FileHandlerError) as cm:
            self.fs.close("ghost")
        self.assertIn("File 'ghost' is not open", str(cm.exception))

    def test_empty_filename(self):
        """Filenames cannot be empty."""
        with self.assertRaises(FileHandlerError):
            self.fs.open("", "WRITE")

    def test_write_echo_can_be_disabled(self):
        """The echo line is only produced when enabled."""
        self.fs.open("out", "WRITE")
        self.assertEqual(self.fs.write_line("out", "hi"), "[Write to out] hi")
        quiet = SimulatedFileSystem(echo_writes=False)
        quiet.open("out", "WRITE")
        self.assertIsNone(quiet.write_line("out", "hi"))


if __name__ == '__main__':
    unittest.main()
