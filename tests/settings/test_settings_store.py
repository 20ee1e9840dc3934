import json
import tempfile
import unittest
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.backend.fs.storage import PathStorage, StorageMode
from src.backend.scheduler.config import SchedulerConfig
from src.backend.scheduler.scheduler import BatchScheduler
from src.backend.settings.api import create_settings_router
from src.backend.settings.models import ExportSettings
from src.backend.settings.store import SettingsStore


class TestExportSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = ExportSettings()
        self.assertEqual(settings.public_folder, "Downloads")
        self.assertEqual(settings.storage_mode, StorageMode.AUTO)
        self.assertEqual(settings.buffer_size, 65536)
        self.assertEqual(settings.max_rename_attempts, 1000)
        self.assertEqual(settings.max_concurrent, 3)

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        settings = ExportSettings.from_persist_dict({
            "storage_mode": "cloud",
            "buffer_size": 0,
            "max_rename_attempts": "many",
            "max_concurrent": -2,
            "min_free_bytes": -1,
            "public_folder": "",
        })
        self.assertEqual(settings, ExportSettings())


class TestSettingsStore(unittest.TestCase):
    def test_missing_file_loads_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SettingsStore(path=Path(tmpdir) / "data" / "config.json")
            self.assertEqual(store.load(), ExportSettings())

    def test_set_value_persists(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "data" / "config.json"
            SettingsStore(path=path).set_value(key="max_concurrent", value=5)

            raw = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(raw["version"], 1)
            self.assertEqual(raw["max_concurrent"], 5)
            self.assertEqual(SettingsStore(path=path).load().max_concurrent, 5)
            self.assertFalse(path.with_suffix(".json.tmp").exists())

    def test_unknown_key_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SettingsStore(path=Path(tmpdir) / "config.json")
            with self.assertRaises(KeyError):
                store.set_value(key="no_such_setting", value=1)

    def test_corrupt_file_loads_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text("[1, 2", encoding="utf-8")
            self.assertEqual(SettingsStore(path=path).load(), ExportSettings())


class TestSettingsApi(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.store = SettingsStore(path=self.tmp / "data" / "config.json")
        self.scheduler_config = SchedulerConfig()
        scheduler = BatchScheduler(
            config=self.scheduler_config,
            runs_dir=self.tmp / "data" / "runs",
            runner=lambda job: None,
        )
        app = FastAPI()
        app.include_router(
            create_settings_router(
                store=self.store,
                scheduler_config=self.scheduler_config,
                scheduler=scheduler,
                storage=PathStorage(self.tmp / "export"),
                repo_root=self.tmp,
            )
        )
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_get_reports_active_storage_mode(self) -> None:
        resp = self.client.get("/api/settings")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["storage_mode"], "auto")
        self.assertEqual(resp.json()["active_storage_mode"], "path")

    def test_export_root_relative_to_repo_root(self) -> None:
        resp = self.client.post("/api/settings/export-root", json={"export_root": "out"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Path(resp.json()["export_root"]), (self.tmp / "out").resolve())
        self.assertTrue((self.tmp / "out").is_dir())

    def test_export_root_that_is_a_file_is_rejected(self) -> None:
        (self.tmp / "file.txt").write_text("x", encoding="utf-8")
        resp = self.client.post("/api/settings/export-root", json={"export_root": str(self.tmp / "file.txt")})
        self.assertEqual(resp.status_code, 400)

    def test_max_concurrent_updates_scheduler_config(self) -> None:
        resp = self.client.post("/api/settings/max-concurrent", json={"max_concurrent": 5})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.scheduler_config.max_concurrent, 5)
        self.assertEqual(self.store.load().max_concurrent, 5)

    def test_max_concurrent_out_of_range(self) -> None:
        resp = self.client.post("/api/settings/max-concurrent", json={"max_concurrent": 0})
        self.assertEqual(resp.status_code, 422)

    def test_storage_settings(self) -> None:
        resp = self.client.post(
            "/api/settings/storage",
            json={"storage_mode": "broker", "public_folder": "Exports", "max_rename_attempts": 10},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["storage_mode"], "broker")
        self.assertEqual(body["active_storage_mode"], "path")
        self.assertEqual(body["public_folder"], "Exports")
        self.assertEqual(self.store.load().max_rename_attempts, 10)

    def test_storage_rejects_nested_folder_name(self) -> None:
        resp = self.client.post("/api/settings/storage", json={"public_folder": "../elsewhere"})
        self.assertEqual(resp.status_code, 400)


if __name__ == "__main__":
    unittest.main()
