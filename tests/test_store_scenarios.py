import threading

import pytest
from pydantic import ValidationError
from sqlmodel import Session

from core.errors import (
    AlreadyInStatusError,
    ConsistencyError,
    ErrorKind,
    StorageEngineError,
    StoreError,
    TagNotFoundError,
    TaskNotFoundError,
    is_transient,
)
from core.settings import BackupSettings
from models import EditableTagData, EditableTaskData, HslColor, TaskTag
from storage.db import MEMORY
from storage.store import SynchronizedStore, _expect_single_row, open_store

from conftest import NO_BACKUP


def test_finished_task_survives_deleting_its_tag(store):
    tag = store.create_tag(
        EditableTagData(name="berries", color=HslColor(hue=50, saturation=89, lightness=73), active=True)
    )
    created = store.create_task(EditableTaskData(title="Blueberries", tag=tag.id))
    finished = store.finish_task(created.id)

    store.delete_tag(tag.id)

    task = store.get_task(created.id)
    assert task.tag is None
    assert task.done_time == finished.done_time
    assert store.list_tags() == []


def test_operations_on_missing_ids_leave_store_unchanged(store, tag_data, task_data):
    store.create_tag(tag_data[0])
    store.create_task(task_data[0])
    tags, tasks = store.list_tags(), store.list_tasks()

    with pytest.raises(TagNotFoundError):
        store.delete_tag(0)
    with pytest.raises(TaskNotFoundError):
        store.update_task(0, task_data[1])

    assert store.list_tags() == tags
    assert store.list_tasks() == tasks


def test_update_task_on_empty_store_reports_task_first(store, task_data):
    with pytest.raises(TaskNotFoundError):
        store.update_task(1, task_data[0].model_copy(update={"tag": 1}))


def test_reopening_keeps_data(db_path, tag_data, task_data):
    with open_store(db_path, backup=NO_BACKUP) as first:
        tag = first.create_tag(tag_data[0])
        first.create_task(task_data[0].model_copy(update={"tag": tag.id}))
        tags, tasks = first.list_tags(), first.list_tasks()

    with open_store(db_path, backup=NO_BACKUP) as second:
        assert second.list_tags() == tags
        assert second.list_tasks() == tasks
        assert second.create_tag(tag_data[1]).id == tag.id + 1


def test_open_store_backs_up_existing_file(db_path, tmp_path, tag_data):
    with open_store(db_path, backup=NO_BACKUP) as s:
        s.create_tag(tag_data[0])

    backups = tmp_path / "backups"
    settings = BackupSettings(directory=backups)
    with open_store(db_path, backup=settings) as s:
        assert len(s.list_tags()) == 1

    copies = list(backups.iterdir())
    assert len(copies) == 1
    assert copies[0].name.startswith("test-db_")


def test_open_store_on_garbage_file(tmp_path):
    path = tmp_path / "broken.sqlite"
    path.write_bytes(b"this is not a sqlite database" * 64)

    with pytest.raises(StorageEngineError) as excinfo:
        open_store(path, backup=NO_BACKUP)

    assert is_transient(excinfo.value)
    assert excinfo.value.kind is ErrorKind.STORAGE_ENGINE
    assert excinfo.value.message.startswith("Storage engine error: ")


def test_in_memory_store(tag_data, task_data):
    with open_store(MEMORY) as s:
        tag = s.create_tag(tag_data[0])
        s.create_task(task_data[0].model_copy(update={"tag": tag.id}))
        assert [t.tag for t in s.list_tasks()] == [tag.id]
        assert s.path == MEMORY


def test_error_payloads():
    assert TagNotFoundError(4).to_payload() == {
        "kind": "tag_not_found",
        "message": "Tag 4 does not exist",
        "id": 4,
    }
    assert TaskNotFoundError(7).to_payload()["message"] == "Task 7 does not exist"
    assert AlreadyInStatusError(2, True).to_payload() == {
        "kind": "already_in_status",
        "message": "Task 2 is already done",
        "id": 2,
        "actual": True,
    }
    assert str(AlreadyInStatusError(2, False)) == "Task 2 is already not done"


def test_domain_errors_are_not_transient():
    assert not is_transient(TagNotFoundError(1))
    assert not is_transient(TaskNotFoundError(1))
    assert not is_transient(AlreadyInStatusError(1, False))
    assert TagNotFoundError(1) != TaskNotFoundError(1)


def test_synchronized_store_serializes_writers(store, tag_data):
    shared = SynchronizedStore(store)
    ids = []
    ids_lock = threading.Lock()

    def worker():
        for _ in range(5):
            result = shared.create_tag(tag_data[0])
            with ids_lock:
                ids.append(result.id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(ids) == list(range(1, 41))
    assert len(shared.list_tags()) == 40
    assert shared.path == store.path


@pytest.mark.parametrize("entity_id", [2**63, -(2**63) - 1])
def test_ids_outside_sqlite_range_are_not_found(store, tag_data, task_data, entity_id):
    store.create_tag(tag_data[0])
    store.create_task(task_data[0])
    tags, tasks = store.list_tags(), store.list_tasks()

    assert store.get_tag(entity_id) is None
    assert store.get_task(entity_id) is None
    with pytest.raises(TagNotFoundError):
        store.update_tag(entity_id, tag_data[1])
    with pytest.raises(TagNotFoundError):
        store.delete_tag(entity_id)
    with pytest.raises(TaskNotFoundError):
        store.update_task(entity_id, task_data[1])
    with pytest.raises(TaskNotFoundError):
        store.delete_task(entity_id)
    with pytest.raises(TaskNotFoundError):
        store.finish_task(entity_id)
    with pytest.raises(TagNotFoundError) as excinfo:
        store.create_task(task_data[1].model_copy(update={"tag": entity_id}))

    assert excinfo.value.id == entity_id
    assert store.list_tags() == tags
    assert store.list_tasks() == tasks


def test_difficulty_is_bounded_to_32_bits(store):
    with pytest.raises(ValidationError):
        EditableTaskData(title="x", difficulty=2**63)
    with pytest.raises(ValidationError):
        EditableTaskData(title="x", difficulty=-(2**31) - 1)

    created = store.create_task(EditableTaskData(title="x", difficulty=2**31 - 1))
    assert store.get_task(created.id).difficulty == 2**31 - 1


def test_unstorable_integer_is_a_storage_engine_error(store):
    # model_copy skips validation, so the oversized value reaches sqlite
    data = EditableTaskData(title="x").model_copy(update={"difficulty": 2**63})

    with pytest.raises(StorageEngineError):
        store.create_task(data)

    assert store.list_tasks() == []


def test_task_linked_to_two_tags_is_a_consistency_error(store, tag_data, task_data):
    first = store.create_tag(tag_data[0])
    second = store.create_tag(tag_data[1])
    task = store.create_task(task_data[0].model_copy(update={"tag": first.id}))
    with Session(store._engine) as session:
        session.add(TaskTag(task_id=task.id, tag_id=second.id))
        session.commit()

    with pytest.raises(ConsistencyError) as excinfo:
        store.list_tasks()
    assert not isinstance(excinfo.value, StoreError)
    with pytest.raises(ConsistencyError):
        store.get_task(task.id)
    with pytest.raises(ConsistencyError):
        store.filter_tasks(lambda t: True)


def test_expect_single_row():
    assert _expect_single_row(1, "Update task", 3, TaskNotFoundError) is None
    with pytest.raises(TaskNotFoundError):
        _expect_single_row(0, "Update task", 3, TaskNotFoundError)
    with pytest.raises(ConsistencyError, match="Update task 3 changed 2 rows"):
        _expect_single_row(2, "Update task", 3, TaskNotFoundError)
