import importlib
from pathlib import Path

from plyfinder import config
from plyfinder.config import Settings, _as_int


class TestSettings:

    def test_overrides(self):
        settings = Settings(sample_size=3, weights='generic')
        assert settings.sample_size == 3
        assert settings.weights == 'generic'

    def test_as_int(self):
        assert _as_int(' 7 ', 5) == 7
        assert _as_int('seven', 5) == 5
        assert _as_int(None, 5) == 5

    def test_default_paths_follow_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv('PLYFINDER_CATALOG_XLSX', raising=False)
        monkeypatch.delenv('PLYFINDER_CATALOG_CSV', raising=False)
        monkeypatch.chdir(tmp_path)
        try:
            reloaded = importlib.reload(config)
            assert reloaded.settings.catalog_xlsx == str(Path.cwd() / 'data' / 'plywood.xlsx')
            assert reloaded.settings.catalog_csv == str(Path.cwd() / 'data' / 'plywood.csv')
        finally:
            monkeypatch.undo()
            importlib.reload(config)
