from datetime import timedelta

from backend.reminder_candidates import resolve_target_user_id, scan_candidates


def test_scan_splits_due_soon_and_overdue(app_ctx, make_user, make_task, now):
    owner = make_user()
    future = make_task(owner=owner, due_at=now + timedelta(hours=2), title='future')
    past = make_task(owner=owner, due_at=now - timedelta(hours=2), title='past')
    exactly_now = make_task(owner=owner, due_at=now, title='now')

    scan = scan_candidates(now)

    assert [c.task.id for c in scan.due_soon] == [future.id]
    assert sorted(c.task.id for c in scan.overdue) == sorted([past.id, exactly_now.id])
    assert len(scan) == 3


def test_scan_ignores_archived_and_undated_tasks(app_ctx, make_user, make_task, now):
    owner = make_user()
    make_task(owner=owner, due_at=None)
    make_task(owner=owner, due_at=now + timedelta(hours=1), archived_at=now - timedelta(days=1))

    scan = scan_candidates(now)

    assert scan.due_soon == []
    assert scan.overdue == []


def test_assignee_wins_over_board_owner(app_ctx, make_user, make_task, now):
    owner = make_user()
    assignee = make_user()
    assigned = make_task(owner=owner, assignee=assignee, due_at=now + timedelta(hours=1))
    unassigned = make_task(owner=owner, due_at=now + timedelta(hours=2))

    assert resolve_target_user_id(assigned) == assignee.id
    assert resolve_target_user_id(unassigned) == owner.id

    targets = {c.task.id: c.user_id for c in scan_candidates(now).due_soon}
    assert targets == {assigned.id: assignee.id, unassigned.id: owner.id}


def test_task_without_any_target_is_reported_not_fatal(app_ctx, make_user, make_task, now):
    owner = make_user()
    orphan = make_task(owner=None, due_at=now + timedelta(hours=1))
    ok = make_task(owner=owner, due_at=now + timedelta(hours=1))

    scan = scan_candidates(now)

    assert scan.skipped_task_ids == [orphan.id]
    assert [c.task.id for c in scan.due_soon] == [ok.id]
