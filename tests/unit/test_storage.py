from pathlib import Path

import pytest

from studybuddy_ai.services.storage import SlotStorage


def test_write_then_read(slot_storage):
    assert slot_storage.read('deck') is None
    slot_storage.write('deck', '[1, 2]')
    assert slot_storage.read('deck') == '[1, 2]'


@pytest.mark.parametrize('key', ['', '../escape', 'a/b', 'white space'])
def test_rejects_unsafe_keys(slot_storage, key):
    with pytest.raises(ValueError):
        slot_storage.write(key, '[]')


def test_failed_write_leaves_no_temp_file(tmp_path, monkeypatch):
    storage = SlotStorage(tmp_path)
    storage.write('deck', '["old"]')

    def disk_full(self, data, encoding=None):
        with open(self, 'w', encoding=encoding) as f:
            f.write(data[:3])
        raise OSError(28, 'No space left on device')

    monkeypatch.setattr(Path, 'write_text', disk_full)
    with pytest.raises(OSError):
        storage.write('deck', '["new", "longer value"]')
    monkeypatch.undo()

    assert sorted(p.name for p in tmp_path.iterdir()) == ['deck.json']
    assert storage.read('deck') == '["old"]'


def test_failed_replace_leaves_no_temp_file(tmp_path, monkeypatch):
    storage = SlotStorage(tmp_path)

    def locked(src, dst):
        raise PermissionError('slot is locked')

    monkeypatch.setattr('studybuddy_ai.services.storage.os.replace', locked)
    with pytest.raises(OSError):
        storage.write('deck', '[]')
    assert list(tmp_path.iterdir()) == []
