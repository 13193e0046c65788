import pytest

from tasklist_api.db.repositories.task_repo import TaskRepo
from tasklist_api.service.tag_reconciler import TagReconciler, normalize_tags

from .conftest import count_tags


@pytest.fixture
def repo(session) -> TaskRepo:
    return TaskRepo(session)


@pytest.fixture
def reconciler(repo) -> TagReconciler:
    return TagReconciler(repo)


@pytest.fixture
async def task_id(repo, user_id, clock) -> int:
    task = await repo.add_task(user_id, "Buy milk", "2%", clock.now())
    return task.id


def test_normalize_trims_lowercases_and_dedupes():
    assert normalize_tags([" Work ", "work", "HOME", "", "   ", None, "home"]) == ["work", "home"]
    assert normalize_tags(None) == []


async def test_add_tags_reuses_existing_rows(reconciler, repo, user_id, clock, task_id):
    other = await repo.add_task(user_id, "Other", "desc", clock.now())
    await reconciler.add_tags(task_id, ["Work"])
    await reconciler.add_tags(other.id, ["  WORK ", "work"])

    assert await count_tags(repo.session) == 1
    assert await repo.get_tag_names(other.id) == {"work"}


async def test_reconcile_adds_and_removes(reconciler, repo, task_id):
    await reconciler.add_tags(task_id, ["work", "home"])

    delta = await reconciler.reconcile(task_id, ["Home", "errands"])

    assert delta.added == ["errands"]
    assert delta.removed == ["work"]
    assert await repo.get_tag_names(task_id) == {"home", "errands"}


async def test_reconcile_is_idempotent(reconciler, repo, task_id):
    await reconciler.reconcile(task_id, ["a", "B", " c "])
    tags_before = await count_tags(repo.session)

    delta = await reconciler.reconcile(task_id, ["A", "b", "c", "c"])

    assert not delta.changed
    assert await repo.get_tag_names(task_id) == {"a", "b", "c"}
    assert await count_tags(repo.session) == tags_before


async def test_reconcile_with_empty_set_clears_everything(reconciler, repo, task_id):
    await reconciler.add_tags(task_id, ["work", "home"])

    delta = await reconciler.reconcile(task_id, [])

    assert delta.removed == ["home", "work"]
    assert await repo.get_tag_names(task_id) == set()
    # orphaned tags stay behind
    assert await count_tags(repo.session) == 2


async def test_blank_tags_never_create_rows(reconciler, repo, task_id):
    delta = await reconciler.reconcile(task_id, ["", "   ", None])

    assert not delta.changed
    assert await count_tags(repo.session) == 0
