"""
Tests for the snapshot history.
"""

import csv
import json
from datetime import datetime, timedelta

import pytest

from ups.utils.snapshot_history import SnapshotHistoryManager, SnapshotEvent


class TestSnapshotEvent:
    """Test SnapshotEvent dataclass."""

    def test_to_dict(self):
        now = datetime.now()
        event = SnapshotEvent(timestamp=now, package='vim', old_version='9.0', new_version='9.1')

        assert event.to_dict() == {
            'timestamp': now.isoformat(),
            'package': 'vim',
            'old_version': '9.0',
            'new_version': '9.1',
        }
        assert event.changed is True

    def test_from_dict(self):
        event = SnapshotEvent.from_dict({
            'timestamp': '2024-01-15T10:30:00.123456',
            'package': 'kernel',
            'old_version': None,
            'new_version': '6.7',
        })

        assert event.timestamp == datetime(2024, 1, 15, 10, 30, 0, 123456)
        assert event.old_version is None
        assert event.changed is True

    def test_unchanged(self):
        event = SnapshotEvent(timestamp=datetime.now(), package='a', old_version='1', new_version='1')
        assert event.changed is False


class TestSnapshotHistoryManager:
    """Test SnapshotHistoryManager functionality."""

    def test_default_path(self, data_dir):
        manager = SnapshotHistoryManager()
        assert manager.path == data_dir / 'history.json'

    def test_record_and_load(self, tmp_path):
        path = tmp_path / 'history.json'
        manager = SnapshotHistoryManager(str(path))
        manager.add(SnapshotEvent(datetime.now() - timedelta(hours=1), 'a', None, '1'))
        manager.add(SnapshotEvent(datetime.now(), 'b', '1', '2'))

        entries = SnapshotHistoryManager(str(path)).all()

        assert [e.package for e in entries] == ['b', 'a']

    def test_record_helper(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'))

        event = manager.record('vim', '9.0', '9.1')

        assert manager.all() == [event]

    def test_for_package(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'))
        manager.record('vim', None, '1')
        manager.record('git', None, '2')

        assert [e.package for e in manager.for_package('git')] == ['git']

    def test_retention_trim(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'), retention_days=1)
        manager.add(SnapshotEvent(datetime.now() - timedelta(days=2), 'old', None, '1'))
        manager.add(SnapshotEvent(datetime.now(), 'new', None, '1'))

        assert [e.package for e in manager.all()] == ['new']

    def test_clear(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'))
        manager.record('vim', None, '1')

        manager.clear()

        assert manager.all() == []
        assert json.loads((tmp_path / 'history.json').read_text()) == []

    def test_corrupted_file_is_ignored(self, tmp_path):
        path = tmp_path / 'history.json'
        path.write_text('{broken')
        manager = SnapshotHistoryManager(str(path))

        assert manager.all() == []
        manager.record('vim', None, '1')
        assert len(manager.all()) == 1

    def test_corrupted_file_is_kept_aside(self, tmp_path):
        path = tmp_path / 'history.json'
        path.write_text('{broken')
        manager = SnapshotHistoryManager(str(path))

        manager.record('vim', None, '1')

        assert (tmp_path / 'history.json.corrupt').read_text() == '{broken'
        assert json.loads(path.read_text())[0]['package'] == 'vim'

    def test_export_json(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'))
        manager.record('vim', '9.0', '9.1')
        out = tmp_path / 'export.json'

        manager.export(str(out), 'json')

        data = json.loads(out.read_text())
        assert data[0]['package'] == 'vim'
        assert data[0]['new_version'] == '9.1'

    def test_export_csv(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'))
        manager.record('vim', None, '9.1')
        out = tmp_path / 'export.csv'

        manager.export(str(out), 'csv')

        with open(out, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0] == ['timestamp', 'package', 'old_version', 'new_version']
        assert rows[1][1:] == ['vim', 'NONE', '9.1']

    def test_export_unknown_format(self, tmp_path):
        manager = SnapshotHistoryManager(str(tmp_path / 'history.json'))
        with pytest.raises(ValueError):
            manager.export(str(tmp_path / 'x.xml'), 'xml')
