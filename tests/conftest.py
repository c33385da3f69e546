import os
import tempfile
from datetime import datetime, timezone

# Keep settings, logs and backups out of the real user data directory.
os.environ.setdefault("TASKKEEPER_DATA_DIR", tempfile.mkdtemp(prefix="taskkeeper-tests-"))

import pytest

from core.settings import BackupSettings
from models import EditableTagData, EditableTaskData, HslColor
from storage.store import open_store


NO_BACKUP = BackupSettings(enabled=False)


@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / "test-db.sqlite"


@pytest.fixture()
def store(db_path):
    with open_store(db_path, backup=NO_BACKUP) as s:
        yield s


@pytest.fixture()
def tag_data():
    return [
        EditableTagData(
            name="berries",
            color=HslColor(hue=50, saturation=89, lightness=73),
            active=True,
        ),
        EditableTagData(
            name="whee!",
            color=HslColor(hue=360, saturation=100, lightness=0),
            active=False,
        ),
    ]


@pytest.fixture()
def task_data():
    return [
        EditableTaskData(
            title="Blueberries",
            body="Pick the ripe ones first.",
            difficulty=3,
            paused=False,
        ),
        EditableTaskData(
            title="Strawberries",
            body="",
            difficulty=5,
            due_time=datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc),
            target_time=datetime(2030, 5, 30, 9, 30, 15, tzinfo=timezone.utc),
            paused=True,
        ),
    ]
