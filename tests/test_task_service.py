from datetime import timedelta

import pytest

from tasklist_api.core.errors import AuthenticationError, NotFoundError, ValidationError
from tasklist_api.db.repositories.task_repo import TaskRepo
from tasklist_api.models.schemas import TaskListQuery

from .conftest import STRONG_PASSWORD, count_tags


async def test_create_task(task_service, user_id):
    task = await task_service.create_task(user_id, " Buy milk ", "2%", ["Work", " home ", "work", ""])

    assert task.id > 0
    assert task.title == "Buy milk"
    assert task.tags == ["home", "work"]
    assert task.updated_date is None


async def test_create_task_for_unknown_user(task_service):
    with pytest.raises(ValidationError):
        await task_service.create_task(404, "Buy milk", "2%", [])


@pytest.mark.parametrize("title,description", [("", "d"), ("   ", "d"), ("t", ""), ("t", "  ")])
async def test_create_task_requires_title_and_description(task_service, user_id, title, description):
    with pytest.raises(ValidationError):
        await task_service.create_task(user_id, title, description, [])


async def test_get_task_returns_sorted_tags(task_service, user_id):
    created = await task_service.create_task(user_id, "t", "d", ["zeta", "alpha", "mid"])

    task = await task_service.get_task(user_id, created.id)

    assert task.tags == ["alpha", "mid", "zeta"]


async def test_get_task_of_another_user_is_not_found(task_service, auth_service, tokens, user_id):
    created = await task_service.create_task(user_id, "t", "d", [])
    other = await auth_service.register("Bob", "bob@x.com", STRONG_PASSWORD)
    other_id = int(tokens.decode_access_token(other.access_token)["sub"])

    with pytest.raises(NotFoundError):
        await task_service.get_task(other_id, created.id)


async def test_update_task(task_service, user_id, clock):
    created = await task_service.create_task(user_id, "old", "old desc", ["work", "home"])
    clock.advance(minutes=5)

    updated = await task_service.update_task(user_id, created.id, "new", "new desc", ["HOME", "errands"])

    assert updated.title == "new"
    assert updated.description == "new desc"
    assert updated.tags == ["errands", "home"]
    assert updated.updated_date == clock.now()
    assert updated.created_date == created.created_date
    assert updated.created_date < updated.updated_date - timedelta(minutes=4)


async def test_update_validation(task_service, user_id):
    created = await task_service.create_task(user_id, "t", "d", [])

    with pytest.raises(ValidationError):
        await task_service.update_task(user_id, 0, "t", "d", [])
    with pytest.raises(ValidationError):
        await task_service.update_task(user_id, -1, "t", "d", [])
    with pytest.raises(ValidationError):
        await task_service.update_task(user_id, created.id, " ", "d", [])
    with pytest.raises(NotFoundError):
        await task_service.update_task(user_id, created.id + 100, "t", "d", [])


async def test_update_rolls_back_everything_on_failure(task_service, user_id, monkeypatch):
    created = await task_service.create_task(user_id, "keep", "keep desc", ["work", "home"])

    async def explode(task_id, tag_id):
        raise RuntimeError("storage went away")

    monkeypatch.setattr(task_service.repo, "add_tag_link", explode)
    with pytest.raises(RuntimeError):
        await task_service.update_task(user_id, created.id, "changed", "changed", ["errands"])
    monkeypatch.undo()

    task = await task_service.get_task(user_id, created.id)
    assert task.title == "keep"
    assert task.description == "keep desc"
    assert task.updated_date is None
    assert task.tags == ["home", "work"]
    assert await task_service.repo.get_tag_ids(["errands"]) == {}


async def test_delete_task_keeps_tags(task_service, session, user_id):
    created = await task_service.create_task(user_id, "t", "d", ["work"])

    await task_service.delete_task(user_id, created.id)

    with pytest.raises(NotFoundError):
        await task_service.get_task(user_id, created.id)
    repo = TaskRepo(session)
    assert await repo.get_tag_names(created.id) == set()
    assert await count_tags(repo.session) == 1


async def test_delete_missing_task(task_service, user_id):
    with pytest.raises(NotFoundError):
        await task_service.delete_task(user_id, 12345)


async def test_ann_scenario(auth_service, task_service, tokens):
    registered = await auth_service.register("Ann", "ann@x.com", "Str0ng!Pass")
    assert registered.is_authenticated
    user_id = int(tokens.decode_access_token(registered.access_token)["sub"])

    with pytest.raises(AuthenticationError):
        await auth_service.login("ann@x.com", "wrong")

    logged_in = await auth_service.login("ann@x.com", "Str0ng!Pass")
    assert logged_in.refresh_token

    await task_service.create_task(user_id, "Buy milk", "2%", ["work"])
    page = await task_service.list_tasks(user_id, TaskListQuery(filter_by_tag="work"))
    assert page.total_count == 1
    assert page.items[0].title == "Buy milk"
