"""
Tests for batched remote deletion and the SSH exec layer beneath it.
"""
import math
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import paramiko

from synoclean.core.ssh_manager import SSHManager
from synoclean.errors import BatchDeletionError
from synoclean.operations.delete import BatchDeleter, build_rm_argv
from synoclean.state.queue_store import QueueStore

from tests.fakes import FakeSSH


def _paths(n):
    return [f"/data/{i:04d}/@eaDir" for i in range(n)]


class TestBuildRmArgv(unittest.TestCase):

    def test_argv_shape(self):
        self.assertEqual(build_rm_argv(["/a/@eaDir", "/b/@eaDir"]),
                         ["rm", "-rf", "--", "/a/@eaDir", "/b/@eaDir"])


class TestBatchDeleter(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.store = QueueStore(Path(self.tmpdir.name) / "queue.txt")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_250_entries_in_batches_of_100(self):
        paths = _paths(250)
        self.store.create(paths)
        ssh = FakeSSH(self.store)
        deleted = BatchDeleter(ssh, self.store, 100).drain()

        self.assertEqual(deleted, 250)
        self.assertEqual([len(c) - 3 for c in ssh.calls], [100, 100, 50])
        self.assertEqual(ssh.calls[0][3:], paths[:100])
        self.assertEqual(ssh.calls[1][3:], paths[100:200])
        self.assertEqual(ssh.calls[2][3:], paths[200:])
        # each prefix left the queue before the next call went out
        self.assertEqual(ssh.queue_sizes, [250, 150, 50])
        self.assertEqual(self.store.size(), 0)

    def test_call_count_is_ceil_n_over_b(self):
        for n, b in [(1, 100), (100, 100), (101, 100), (7, 3), (9, 3)]:
            with self.subTest(n=n, b=b):
                self.store.create(_paths(n))
                ssh = FakeSSH()
                BatchDeleter(ssh, self.store, b).drain()
                self.assertEqual(len(ssh.calls), math.ceil(n / b))

    def test_empty_queue_makes_no_calls(self):
        self.store.create([])
        ssh = FakeSSH()
        self.assertEqual(BatchDeleter(ssh, self.store).drain(), 0)
        self.assertEqual(ssh.calls, [])

    def test_failed_first_batch_leaves_queue_identical(self):
        self.store.create(_paths(250))
        before = self.store.path.read_bytes()
        ssh = FakeSSH(fail_on={1})
        with self.assertRaises(BatchDeletionError) as ctx:
            BatchDeleter(ssh, self.store, 100).drain()
        self.assertEqual(self.store.path.read_bytes(), before)
        self.assertEqual(ctx.exception.exit_status, 1)
        self.assertEqual(ctx.exception.batch_size, 100)
        self.assertIn("Permission denied", ctx.exception.diagnostics)

    def test_failure_stops_the_loop_and_keeps_the_failed_batch(self):
        paths = _paths(250)
        self.store.create(paths)
        ssh = FakeSSH(fail_on={2})
        deleter = BatchDeleter(ssh, self.store, 100)
        with self.assertRaises(BatchDeletionError):
            deleter.drain()
        self.assertEqual(len(ssh.calls), 2)
        self.assertEqual(deleter.deleted, 100)
        self.assertEqual(self.store.head(1000), paths[100:])

    def test_connection_error_becomes_batch_deletion_error(self):
        self.store.create(_paths(3))
        before = self.store.path.read_bytes()
        ssh = FakeSSH(fail_on={1}, exc=paramiko.SSHException("channel closed"))
        with self.assertRaises(BatchDeletionError) as ctx:
            BatchDeleter(ssh, self.store, 100).drain()
        self.assertIsNone(ctx.exception.exit_status)
        self.assertEqual(self.store.path.read_bytes(), before)

    def test_socket_error_becomes_batch_deletion_error(self):
        self.store.create(_paths(3))
        ssh = FakeSSH(fail_on={1}, exc=ConnectionResetError("reset by peer"))
        with self.assertRaises(BatchDeletionError):
            BatchDeleter(ssh, self.store, 100).drain()
        self.assertEqual(self.store.size(), 3)

    def test_rejects_non_positive_batch_size(self):
        with self.assertRaises(ValueError):
            BatchDeleter(FakeSSH(), self.store, 0)


class TestSSHManagerRun(unittest.TestCase):
    """SSHManager.run() quoting and non-interactive exec, with paramiko mocked."""

    def _manager(self, rc=0, out=b"", err=b""):
        mgr = SSHManager("nas")
        client = mock.MagicMock()
        stdin, stdout, stderr = mock.MagicMock(), mock.MagicMock(), mock.MagicMock()
        stdout.read.return_value = out
        stderr.read.return_value = err
        stdout.channel.recv_exit_status.return_value = rc
        client.exec_command.return_value = (stdin, stdout, stderr)
        mgr._ssh = client
        return mgr, client, stdin

    def test_each_argument_is_quoted_separately(self):
        mgr, client, stdin = self._manager()
        rc, _, _ = mgr.run(build_rm_argv([
            "/data/My Music/@eaDir",
            "/data/$(reboot)/@eaDir",
            "/data/*/@eaDir",
            "/data/plain/@eaDir",
        ]))
        self.assertEqual(rc, 0)
        cmd = client.exec_command.call_args[0][0]
        self.assertEqual(
            cmd,
            "rm -rf -- '/data/My Music/@eaDir' '/data/$(reboot)/@eaDir' "
            "'/data/*/@eaDir' /data/plain/@eaDir",
        )
        stdin.close.assert_called_once()

    def test_no_pty_and_no_timeout(self):
        mgr, client, _ = self._manager()
        mgr.run(["true"])
        _, kwargs = client.exec_command.call_args
        self.assertNotIn("get_pty", kwargs)
        self.assertNotIn("timeout", kwargs)

    def test_returns_exit_status_and_stderr(self):
        mgr, _, _ = self._manager(rc=1, err=b"rm: Permission denied\n")
        rc, out, err = mgr.run(["rm", "-rf", "--", "/x"])
        self.assertEqual(rc, 1)
        self.assertEqual(out, "")
        self.assertIn("Permission denied", err)

    def test_run_before_connect(self):
        with self.assertRaises(RuntimeError):
            SSHManager("nas").run(["true"])


if __name__ == "__main__":
    unittest.main()
