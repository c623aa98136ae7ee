"""
Tests for the persistent package store.
"""

import json

import pytest

from ups.exceptions import StoreError, PackageNotFoundError, DuplicatePackageError
from ups.models import PackageEntry
from ups.store import PackageStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / 'store' / 'packages.json'


class TestPackageStore:
    """Test PackageStore functionality."""

    def test_default_path(self, data_dir):
        store = PackageStore()
        assert store.path == data_dir / 'packages.json'

    def test_missing_file_is_empty(self, store_path):
        store = PackageStore(str(store_path))
        assert len(store) == 0
        assert store.all() == []

    def test_empty_file_is_empty(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text('')
        assert len(PackageStore(str(store_path))) == 0

    def test_add_save_and_reload(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='zsh', script_path='/s/zsh'))
        store.add(PackageEntry(name='bash', script_path='/s/bash', snapshot_version='5.2'))
        store.save()

        reloaded = PackageStore(str(store_path))

        assert reloaded.names() == ['bash', 'zsh']
        assert reloaded.get('bash').snapshot_version == '5.2'
        assert reloaded.get('zsh').snapshot_version is None
        assert 'zsh' in reloaded

    def test_saved_file_is_json_list(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='zsh', script_path='/s/zsh', latest_version='5.9'))
        store.save()

        data = json.loads(store_path.read_text())
        assert data == [{
            'name': 'zsh',
            'script_path': '/s/zsh',
            'snapshot_version': None,
            'latest_version': '5.9',
        }]

    def test_no_temp_file_left_behind(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='zsh', script_path='/s/zsh'))
        store.save()

        assert not store_path.with_suffix('.tmp').exists()

    def test_duplicate_rejected(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='zsh', script_path='/a'))

        with pytest.raises(DuplicatePackageError):
            store.add(PackageEntry(name='zsh', script_path='/b'))

        assert store.get('zsh').script_path == '/a'

    def test_duplicate_replaced(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='zsh', script_path='/a', snapshot_version='1'))
        store.add(PackageEntry(name='zsh', script_path='/b'), replace=True)

        assert len(store) == 1
        assert store.get('zsh').script_path == '/b'
        assert store.get('zsh').snapshot_version is None

    def test_get_unknown(self, store_path):
        store = PackageStore(str(store_path))
        with pytest.raises(PackageNotFoundError, match='`vim` is not registered'):
            store.get('vim')

    def test_update_unknown(self, store_path):
        store = PackageStore(str(store_path))
        with pytest.raises(PackageNotFoundError):
            store.update(PackageEntry(name='vim', script_path='/v'))

    def test_remove(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='vim', script_path='/v'))
        store.save()

        removed = store.remove('vim')
        store.save()

        assert removed.name == 'vim'
        assert len(PackageStore(str(store_path))) == 0
        with pytest.raises(PackageNotFoundError):
            store.remove('vim')

    def test_all_sorted_by_name(self, store_path):
        store = PackageStore(str(store_path))
        for name in ['c', 'a', 'b']:
            store.add(PackageEntry(name=name, script_path=f'/{name}'))

        assert [e.name for e in store] == ['a', 'b', 'c']

    def test_load_discards_unsaved_changes(self, store_path):
        store = PackageStore(str(store_path))
        store.add(PackageEntry(name='vim', script_path='/v'))
        store.load()

        assert 'vim' not in store


class TestCorruptedStore:
    """A broken store file is an error, never silently emptied."""

    @pytest.mark.parametrize('content', [
        '{not json',
        '{"name": "x"}',
        '[{"script_path": "/x"}]',
        '[{"name": "", "script_path": "/x"}]',
        '[42]',
        '[{"name": 1, "script_path": "/x"}, {"name": "b", "script_path": "/y"}]',
        '[{"name": "has space", "script_path": "/x"}]',
        '[{"name": "NONE", "script_path": "/x"}]',
        '[{"name": "fd", "script_path": ["x"]}]',
        '[{"name": "fd", "script_path": "/x", "latest_version": 9}]',
    ])
    def test_corrupted_content(self, store_path, content):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(content)

        with pytest.raises(StoreError, match='Corrupted'):
            PackageStore(str(store_path)).load()

        # The user's file is left as it was
        assert store_path.read_text() == content

    def test_duplicate_names_in_file(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps([
            {'name': 'a', 'script_path': '/1'},
            {'name': 'a', 'script_path': '/2'},
        ]))

        with pytest.raises(StoreError, match='duplicate'):
            PackageStore(str(store_path)).load()

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('a file, not a directory')
        store = PackageStore(str(blocker / 'packages.json'))
        store.add(PackageEntry(name='a', script_path='/a'))

        with pytest.raises(StoreError, match='Failed to save'):
            store.save()
