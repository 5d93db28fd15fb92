import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from vaultbackup.core.errors import BackupPermissionError, MissingDirectoryError, MissingExecutableError
from vaultbackup.core.models import ExitCode
from vaultbackup.core.preflight import PROBE_FILENAME, check_preconditions


class PreconditionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.vault = self.root / "vault"
        self.vault.write_text("#!/bin/sh\n", encoding="utf-8")
        self.backup_dir = self.root / "backups"
        self.backup_dir.mkdir()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_passes_and_leaves_no_probe_behind(self) -> None:
        check_preconditions(self.vault, self.backup_dir)

        self.assertEqual([], list(self.backup_dir.iterdir()))

    def test_missing_executable_fails_regardless_of_directory(self) -> None:
        missing = self.root / "no-such-vault"
        for backup_dir in (self.backup_dir, self.root / "missing-dir"):
            with self.subTest(backup_dir=backup_dir):
                with self.assertRaises(MissingExecutableError) as ctx:
                    check_preconditions(missing, backup_dir)
                self.assertEqual(ExitCode.MISSING_EXECUTABLE, ctx.exception.exit_code)

    def test_directory_is_not_an_executable(self) -> None:
        with self.assertRaises(MissingExecutableError):
            check_preconditions(self.backup_dir, self.backup_dir)

    def test_missing_backup_directory(self) -> None:
        with self.assertRaises(MissingDirectoryError):
            check_preconditions(self.vault, self.root / "missing-dir")

    def test_backup_path_that_is_a_file(self) -> None:
        with self.assertRaises(MissingDirectoryError):
            check_preconditions(self.vault, self.vault)

    def test_probe_failure_is_a_permission_error(self) -> None:
        with mock.patch.object(Path, "open", side_effect=PermissionError("denied")):
            with self.assertRaises(BackupPermissionError) as ctx:
                check_preconditions(self.vault, self.backup_dir)

        self.assertIn("denied", str(ctx.exception))
        self.assertFalse((self.backup_dir / PROBE_FILENAME).exists())

    def test_dry_run_checks_access_without_writing(self) -> None:
        with mock.patch.object(Path, "open") as fake_open:
            check_preconditions(self.vault, self.backup_dir, dry_run=True)

        fake_open.assert_not_called()

    def test_dry_run_reports_missing_access(self) -> None:
        with mock.patch("vaultbackup.core.preflight.os.access", return_value=False):
            with self.assertRaises(BackupPermissionError):
                check_preconditions(self.vault, self.backup_dir, dry_run=True)


if __name__ == "__main__":
    unittest.main()
