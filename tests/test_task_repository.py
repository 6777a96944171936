from datetime import date, datetime, timedelta

from app.models import Task, TaskStatus, TaskPriority
from app.repositories.task_repository import TaskRepository
from app.schemas.task import TaskFilters


def add_task(db, manager, employee, **fields):
    now = fields.pop("created_at", datetime.utcnow())
    values = dict(
        title="Task",
        status=TaskStatus.OPEN.value,
        priority=TaskPriority.MEDIUM.value,
        employee_id=employee.id,
        creator_id=manager.id,
        created_at=now,
        updated_at=now,
    )
    values.update(fields)
    return TaskRepository(db).create(**values)


def test_list_total_uses_same_filters_as_page(db, manager, employee):
    base = datetime(2024, 1, 1, 8, 0)
    for i in range(12):
        add_task(db, manager, employee, title=f"open {i}", created_at=base + timedelta(minutes=i))
    for i in range(3):
        add_task(
            db, manager, employee,
            title=f"done {i}",
            status=TaskStatus.COMPLETED.value,
            created_at=base + timedelta(hours=1, minutes=i),
        )

    repo = TaskRepository(db)
    tasks, total = repo.list(TaskFilters(status=TaskStatus.OPEN), page=2, limit=10, today=date(2024, 1, 2))

    assert total == 12
    assert len(tasks) == 2
    assert all(task.status == "open" for task in tasks)


def test_list_orders_newest_first(db, manager, employee):
    base = datetime(2024, 1, 1, 8, 0)
    add_task(db, manager, employee, title="older", created_at=base)
    add_task(db, manager, employee, title="newer", created_at=base + timedelta(days=1))

    tasks, _ = TaskRepository(db).list(TaskFilters(), page=1, limit=10, today=date(2024, 1, 5))

    assert [task.title for task in tasks] == ["newer", "older"]


def test_search_matches_device_and_serial(db, manager, employee):
    add_task(db, manager, employee, title="Printer jam", device_model="HP LaserJet")
    add_task(db, manager, employee, title="Router", serial_number="SN-4471")
    add_task(db, manager, employee, title="Unrelated")

    repo = TaskRepository(db)
    by_device, total = repo.list(TaskFilters(search="laserjet"), page=1, limit=10, today=date.today())
    by_serial, _ = repo.list(TaskFilters(search="4471"), page=1, limit=10, today=date.today())

    assert total == 1
    assert by_device[0].title == "Printer jam"
    assert by_serial[0].title == "Router"


def test_overdue_filter_excludes_closed_tasks(db, manager, employee):
    today = date(2024, 3, 10)
    add_task(db, manager, employee, title="late", deadline=date(2024, 3, 9))
    add_task(db, manager, employee, title="late but done", deadline=date(2024, 3, 1), status=TaskStatus.COMPLETED.value)
    add_task(db, manager, employee, title="late but cancelled", deadline=date(2024, 3, 1), status=TaskStatus.CANCELLED.value)
    add_task(db, manager, employee, title="due today", deadline=today)
    add_task(db, manager, employee, title="no deadline")

    tasks, total = TaskRepository(db).list(TaskFilters(overdue=True), page=1, limit=10, today=today)

    assert total == 1
    assert tasks[0].title == "late"


def test_task_date_range_and_assignee_filters(db, manager, employee, other_employee):
    add_task(db, manager, employee, title="march", task_date=date(2024, 3, 5))
    add_task(db, manager, employee, title="april", task_date=date(2024, 4, 5))
    add_task(db, manager, other_employee, title="march other", task_date=date(2024, 3, 6))

    filters = TaskFilters(employee_id=employee.id, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
    tasks, total = TaskRepository(db).list(filters, page=1, limit=10, today=date(2024, 5, 1))

    assert total == 1
    assert tasks[0].title == "march"


def test_update_applies_only_given_fields(db, manager, employee):
    task = add_task(db, manager, employee, title="Fix printer", description="toner", device_model="HP")
    now = datetime(2024, 3, 1, 12, 0)

    task = TaskRepository(db).update(task, {"description": None}, now)

    assert task.description is None
    assert task.title == "Fix printer"
    assert task.device_model == "HP"
    assert task.updated_at == now


def test_delete_keeps_notifications_without_task(db, manager, employee, notifications):
    task = add_task(db, manager, employee, title="Short lived")
    task_id = task.id
    notification = notifications.task_assigned(task_id, employee.id, task.title, manager.full_name)

    TaskRepository(db).delete(task)
    db.expire_all()

    assert db.get(Task, task_id) is None
    assert notification.task_id is None
    assert notification.message
