import tempfile
import unittest
from pathlib import Path

from src.backend.fs.storage import (
    BrokerStorage,
    MediaIndex,
    PathStorage,
    StorageMode,
    probe_storage_mode,
    select_storage_strategy,
)


class TestPathStorage(unittest.TestCase):
    def test_reserve_free_name_creates_empty_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = PathStorage(Path(tmpdir))
            storage.ensure_folder()

            reservation = storage.try_reserve("a.txt", "text/plain")

            self.assertIsNotNone(reservation)
            self.assertEqual(reservation.path, storage.folder / "a.txt")
            self.assertTrue(reservation.path.exists())
            self.assertEqual(reservation.path.read_bytes(), b"")
            self.assertIsNone(reservation.entry_id)

    def test_existing_path_is_a_conflict(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = PathStorage(Path(tmpdir))
            storage.ensure_folder()
            (storage.folder / "a.txt").write_bytes(b"keep me")

            self.assertIsNone(storage.try_reserve("a.txt", "text/plain"))
            self.assertEqual((storage.folder / "a.txt").read_bytes(), b"keep me")

    def test_second_reservation_of_same_name_fails(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = PathStorage(Path(tmpdir))
            storage.ensure_folder()

            self.assertIsNotNone(storage.try_reserve("a.txt", "text/plain"))
            self.assertIsNone(storage.try_reserve("a.txt", "text/plain"))

    def test_folder_is_under_export_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = PathStorage(Path(tmpdir), "Exports")
            self.assertEqual(storage.folder, Path(tmpdir).resolve() / "Exports")
            self.assertEqual(storage.mode, StorageMode.PATH)


class TestBrokerStorage(unittest.TestCase):
    def _storage(self, tmp: Path) -> BrokerStorage:
        return BrokerStorage(tmp / "root", index=MediaIndex(path=tmp / "index.sqlite3"))

    def test_reserve_returns_entry_id(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = self._storage(Path(tmpdir))

            reservation = storage.try_reserve("a.txt", "text/plain")

            self.assertIsNotNone(reservation)
            self.assertIsInstance(reservation.entry_id, int)
            self.assertEqual(reservation.path, storage.folder / "a.txt")

    def test_duplicate_insert_is_a_conflict(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = self._storage(Path(tmpdir))

            self.assertIsNotNone(storage.try_reserve("a.txt", "text/plain"))
            self.assertIsNone(storage.try_reserve("a.txt", "text/plain"))
            self.assertEqual(storage.index.names(relative_path="Downloads"), ["a.txt"])

    def test_failed_open_releases_index_entry(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = self._storage(Path(tmpdir))
            storage.ensure_folder()
            reservation = storage.try_reserve("a.txt", "text/plain")
            (storage.folder / "a.txt").mkdir()

            with self.assertRaises(OSError):
                storage.open_for_write(reservation)

            self.assertEqual(storage.index.names(relative_path="Downloads"), [])

    def test_opened_entry_is_kept(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = self._storage(Path(tmpdir))
            storage.ensure_folder()
            reservation = storage.try_reserve("a.txt", "text/plain")

            with storage.open_for_write(reservation) as handle:
                handle.write(b"x")

            self.assertEqual(storage.index.names(relative_path="Downloads"), ["a.txt"])

    def test_unindexed_file_on_disk_is_a_conflict(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = self._storage(Path(tmpdir))
            storage.ensure_folder()
            (storage.folder / "a.txt").write_bytes(b"placed by hand")

            self.assertIsNone(storage.try_reserve("a.txt", "text/plain"))
            self.assertEqual(storage.index.names(relative_path="Downloads"), [])

    def test_same_name_in_other_folder_is_free(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            index = MediaIndex(path=tmp / "index.sqlite3")
            downloads = BrokerStorage(tmp / "root", "Downloads", index=index)
            documents = BrokerStorage(tmp / "root", "Documents", index=index)

            self.assertIsNotNone(downloads.try_reserve("a.txt", "text/plain"))
            self.assertIsNotNone(documents.try_reserve("a.txt", "text/plain"))

    def test_index_survives_new_instance(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            self.assertIsNotNone(self._storage(tmp).try_reserve("a.txt", "text/plain"))
            self.assertIsNone(self._storage(tmp).try_reserve("a.txt", "text/plain"))


class TestStrategySelection(unittest.TestCase):
    def test_modern_sqlite_selects_broker(self) -> None:
        self.assertEqual(probe_storage_mode((3, 45, 1)), StorageMode.BROKER)

    def test_old_sqlite_selects_path(self) -> None:
        self.assertEqual(probe_storage_mode((3, 22, 0)), StorageMode.PATH)

    def test_explicit_modes(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            path_storage = select_storage_strategy(
                mode="path", export_root=tmp, index_path=tmp / "i.sqlite3"
            )
            broker_storage = select_storage_strategy(
                mode=StorageMode.BROKER, export_root=tmp, index_path=tmp / "i.sqlite3"
            )

            self.assertIsInstance(path_storage, PathStorage)
            self.assertIsInstance(broker_storage, BrokerStorage)

    def test_unknown_mode_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            with self.assertRaises(ValueError):
                select_storage_strategy(mode="cloud", export_root=tmp, index_path=tmp / "i.sqlite3")


if __name__ == "__main__":
    unittest.main()
