"""
Tests for the manifest store
"""

import threading
from datetime import datetime, timezone

import pytest

from ghost.repositories.manifest_repository import ManifestRepository


@pytest.fixture
def store(app):
    return ManifestRepository()


class TestManifestRepository:
    """Append-only manifest log"""

    def test_empty_store(self, store):
        assert store.get_current() is None
        assert store.count() == 0
        assert store.get_history() == []

    def test_append_returns_record(self, store, sample_manifest):
        record = store.append(sample_manifest)

        assert record.version == '56578.17.04.12.1251-6'
        assert record.payload == sample_manifest
        assert record.id is not None

    def test_latest_append_is_current(self, store):
        store.append({'version': '1'})
        store.append({'version': '2'})
        store.append({'version': '3'})

        assert store.get_current().version == '3'
        assert store.count() == 3

    def test_ids_increase_when_clock_stands_still(self, app):
        frozen = datetime(2017, 4, 12, 12, 51, tzinfo=timezone.utc)
        store = ManifestRepository(clock=lambda: frozen)

        first = store.append({'version': '1'})
        second = store.append({'version': '2'})

        assert second.id > first.id
        assert store.get_current().version == '2'

    def test_ids_increase_when_clock_goes_back(self, app):
        times = iter([
            datetime(2017, 4, 12, 12, 51, tzinfo=timezone.utc),
            datetime(2017, 4, 11, 9, 0, tzinfo=timezone.utc),
        ])
        store = ManifestRepository(clock=lambda: next(times))

        store.append({'version': '1'})
        store.append({'version': '2'})

        assert store.get_current().version == '2'

    def test_records_are_never_rewritten(self, store):
        store.append({'version': '1'})
        store.append({'version': '1'})

        history = store.get_history()
        assert [r.version for r in history] == ['1', '1']
        assert history[0].id > history[1].id

    def test_history_newest_first(self, store):
        for version in ('1', '2', '3'):
            store.append({'version': version})

        assert [r.version for r in store.get_history()] == ['3', '2', '1']
        assert [r.version for r in store.get_history(limit=2)] == ['3', '2']

    def test_content_path_for_locale(self, store, sample_manifest):
        record = store.append(sample_manifest)

        assert record.content_path('en').endswith('world_sql_content_4a1c2f.content')
        assert record.content_path('de') is None

    def test_payload_must_be_a_mapping(self, store):
        with pytest.raises(TypeError):
            store.append(['not', 'a', 'manifest'])

    def test_to_dict(self, store, sample_manifest):
        data = store.append(sample_manifest).to_dict()

        assert data['version'] == sample_manifest['version']
        assert data['manifest'] == sample_manifest
        assert data['id'].startswith('20')


class TestConcurrentAppends:
    """Appends from several threads share one store"""

    THREADS = 8

    @pytest.fixture
    def file_app(self, settings, tmp_path):
        from ghost.app import create_app
        from ghost.services import get_services

        settings['database']['uri'] = f"sqlite:///{tmp_path / 'ghost.db'}"
        _app = create_app(settings)
        yield _app
        get_services(_app).shutdown()

    def test_concurrent_appends(self, file_app):
        # Frozen clock so every thread starts from the same candidate id
        frozen = datetime(2017, 4, 12, 12, 51, tzinfo=timezone.utc)
        store = ManifestRepository(clock=lambda: frozen)
        start = threading.Barrier(self.THREADS)
        ids, errors = [], []

        def append(n):
            with file_app.app_context():
                try:
                    start.wait()
                    ids.append(store.append({'version': str(n)}).id)
                except Exception as e:
                    errors.append(e)

        threads = [threading.Thread(target=append, args=(n,)) for n in range(self.THREADS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        with file_app.app_context():
            assert store.count() == self.THREADS
            assert len(set(ids)) == self.THREADS
            assert store.get_current().id == max(ids)
