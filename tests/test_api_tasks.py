def create_task(client, headers, manager, employee, **overrides):
    body = {"title": "Fix printer", "employeeId": employee.id, "priority": "high"}
    body.update(overrides)
    response = client.post("/tasks", json=body, headers=headers(manager))
    assert response.status_code == 201, response.text
    return response.json()


def test_create_then_fetch_round_trip(client, headers, manager, employee):
    created = create_task(client, headers, manager, employee)

    response = client.get(f"/tasks/{created['id']}", headers=headers(manager))

    assert response.status_code == 200
    task = response.json()
    assert task["status"] == "open"
    assert task["priority"] == "high"
    assert task["actual_start_time"] is None
    assert task["actual_end_time"] is None
    assert task["employee_name"] == "Eve Employee"
    assert task["creator_name"] == "Maria Manager"


def test_snake_case_body_is_accepted(client, headers, manager, employee):
    response = client.post(
        "/tasks",
        json={"title": "Fix printer", "employee_id": employee.id, "task_date": "2024-03-01"},
        headers=headers(manager),
    )
    assert response.status_code == 201
    assert response.json()["task_date"] == "2024-03-01"
    assert response.json()["priority"] == "medium"


def test_requests_without_token_are_unauthorized(client):
    response = client.get("/tasks")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_missing_title_is_a_bad_request(client, headers, manager, employee):
    response = client.post("/tasks", json={"employeeId": employee.id}, headers=headers(manager))
    assert response.status_code == 400


def test_blank_title_message_is_readable(client, headers, manager, employee):
    response = client.post("/tasks", json={"title": "  ", "employeeId": employee.id}, headers=headers(manager))
    assert response.status_code == 400
    assert response.json()["detail"] == "Title is required"


def test_employee_cannot_create_task(client, headers, employee):
    response = client.post("/tasks", json={"title": "x", "employeeId": employee.id}, headers=headers(employee))
    assert response.status_code == 403


def test_employee_status_update_on_foreign_task_is_forbidden(client, headers, manager, employee, other_employee):
    task = create_task(client, headers, manager, employee)

    response = client.patch(f"/tasks/{task['id']}/status", json={"status": "completed"}, headers=headers(other_employee))
    assert response.status_code == 403

    unchanged = client.get(f"/tasks/{task['id']}", headers=headers(manager)).json()
    assert unchanged["status"] == "open"
    assert unchanged["actual_end_time"] is None


def test_employee_cannot_view_foreign_task(client, headers, manager, employee, other_employee):
    task = create_task(client, headers, manager, employee)
    response = client.get(f"/tasks/{task['id']}", headers=headers(other_employee))
    assert response.status_code == 403


def test_unknown_task_is_not_found(client, headers, manager):
    assert client.get("/tasks/999", headers=headers(manager)).status_code == 404
    assert client.patch("/tasks/999/status", json={"status": "open"}, headers=headers(manager)).status_code == 404


def test_invalid_status_value_is_a_bad_request(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee)
    response = client.patch(f"/tasks/{task['id']}/status", json={"status": "done"}, headers=headers(employee))
    assert response.status_code == 400


def test_assignee_moves_task_through_lifecycle(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee)

    started = client.patch(f"/tasks/{task['id']}/status", json={"status": "in_progress"}, headers=headers(employee))
    completed = client.patch(f"/tasks/{task['id']}/status", json={"status": "completed"}, headers=headers(employee))

    assert started.status_code == 200
    assert started.json()["actual_start_time"] is not None
    assert completed.json()["status"] == "completed"
    assert completed.json()["actual_start_time"] == started.json()["actual_start_time"]
    assert completed.json()["actual_end_time"] is not None


def test_cancel_requires_reason(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee)

    missing = client.patch(f"/tasks/{task['id']}/cancel", json={}, headers=headers(manager))
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Cancellation reason is required"

    cancelled = client.patch(
        f"/tasks/{task['id']}/cancel",
        json={"cancellationReason": "Customer withdrew"},
        headers=headers(manager),
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancellation_reason"] == "Customer withdrew"


def test_employee_cannot_cancel(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee)
    response = client.patch(f"/tasks/{task['id']}/cancel", json={"cancellationReason": "no"}, headers=headers(employee))
    assert response.status_code == 403


def test_work_report_requires_text(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee)

    empty = client.patch(f"/tasks/{task['id']}/report", json={"workReport": ""}, headers=headers(employee))
    filed = client.patch(f"/tasks/{task['id']}/report", json={"workReport": "Cleaned rollers"}, headers=headers(employee))

    assert empty.status_code == 400
    assert filed.status_code == 200
    assert filed.json()["work_report"] == "Cleaned rollers"


def test_reassign(client, headers, manager, employee, other_employee):
    task = create_task(client, headers, manager, employee)

    missing = client.patch(f"/tasks/{task['id']}/reassign", json={}, headers=headers(manager))
    unknown = client.patch(f"/tasks/{task['id']}/reassign", json={"employeeId": 999}, headers=headers(manager))
    moved = client.patch(f"/tasks/{task['id']}/reassign", json={"employeeId": other_employee.id}, headers=headers(manager))

    assert missing.status_code == 400
    assert missing.json()["detail"] == "Employee ID is required"
    assert unknown.status_code == 400
    assert moved.status_code == 200
    assert moved.json()["employee_name"] == "Oscar Other"


def test_put_leaves_omitted_fields_untouched(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee, description="Paper jam", deviceModel="HP 400")

    response = client.put(f"/tasks/{task['id']}", json={"title": "Fix office printer"}, headers=headers(manager))

    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "Fix office printer"
    assert updated["description"] == "Paper jam"
    assert updated["device_model"] == "HP 400"
    assert updated["priority"] == "high"


def test_delete_task(client, headers, manager, employee):
    task = create_task(client, headers, manager, employee)

    assert client.delete(f"/tasks/{task['id']}", headers=headers(employee)).status_code == 403
    assert client.delete(f"/tasks/{task['id']}", headers=headers(manager)).status_code == 200
    assert client.get(f"/tasks/{task['id']}", headers=headers(manager)).status_code == 404


def test_list_pagination_counts_filtered_rows(client, headers, manager, employee, other_employee):
    for i in range(12):
        create_task(client, headers, manager, employee, title=f"Eve {i}")
    for i in range(3):
        create_task(client, headers, manager, other_employee, title=f"Oscar {i}")

    response = client.get(
        "/tasks",
        params={"employee_id": employee.id, "page": 2, "limit": 5},
        headers=headers(manager),
    )

    body = response.json()
    assert len(body["tasks"]) == 5
    assert body["pagination"] == {
        "current_page": 2,
        "total_pages": 3,
        "total_items": 12,
        "items_per_page": 5,
    }


def test_employee_listing_only_shows_own_tasks(client, headers, manager, employee, other_employee):
    create_task(client, headers, manager, employee, title="Mine")
    create_task(client, headers, manager, other_employee, title="Theirs")

    body = client.get("/tasks", headers=headers(employee)).json()

    assert [task["title"] for task in body["tasks"]] == ["Mine"]
    assert body["pagination"]["total_items"] == 1


def test_overdue_listing(client, headers, manager, employee):
    create_task(client, headers, manager, employee, title="Late", deadline="2000-01-01")
    create_task(client, headers, manager, employee, title="Future", deadline="2999-01-01")

    body = client.get("/tasks", params={"overdue": True}, headers=headers(manager)).json()

    assert [task["title"] for task in body["tasks"]] == ["Late"]
