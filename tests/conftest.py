import os
import tempfile
import pytest
from pathlib import Path

from dotenv import load_dotenv

# load test env first
env_path = Path(__file__).resolve().parents[1] / '.env.test'
if env_path.exists():
    load_dotenv(env_path)

os.environ.setdefault('MOCK_MODE', '1')
os.environ.setdefault('RATE_LIMIT', '10000/minute')
os.environ.setdefault('STORAGE_DIR', tempfile.mkdtemp(prefix='studybuddy-test-'))
os.environ.setdefault('LOG_LEVEL', 'WARNING')


@pytest.fixture(autouse=True)
def clean_notifications():
    from studybuddy_ai.services.notify import clear_pending
    clear_pending()
    yield
    clear_pending()


@pytest.fixture
def slot_storage(tmp_path):
    from studybuddy_ai.services.storage import SlotStorage
    return SlotStorage(tmp_path / 'slots')


@pytest.fixture
def store(slot_storage):
    from studybuddy_ai.services.saved_cards import SavedCardStore
    s = SavedCardStore(slot_storage, key='studybuddyai_saved_cards')
    s.initialize()
    return s


@pytest.fixture
def make_file():
    from studybuddy_ai.services.material import UploadedMaterial

    def _make(name='notes.txt', media_type='text/plain', size=None, content=None):
        if content is None:
            content = b'x' * (size if size is not None else 64)
        return UploadedMaterial(filename=name, media_type=media_type, content=content)

    return _make


class FakeGenerator:
    """Stands in for the generation service; records every call."""

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    async def __call__(self, study_material, number_of_questions):
        from studybuddy_ai.services.material import parse_data_uri
        _, content = parse_data_uri(study_material)
        key = content.decode('utf-8')
        self.calls.append((key, number_of_questions))
        result = self.results.get(key)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return {'questionCards': [
                {'question': f'{key} q{i}', 'answer': f'{key} a{i}'} for i in range(1, number_of_questions + 1)
            ]}
        return result


@pytest.fixture
def fake_generator():
    return FakeGenerator


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient
    from studybuddy_ai.main import app
    from studybuddy_ai.services.saved_cards import saved_cards

    app.dependency_overrides[saved_cards] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
