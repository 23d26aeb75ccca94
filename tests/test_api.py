JOHN_ID = "6562a0f0a0a0a0a0a0a0a0b2"
JANE_ID = "6562a0f0a0a0a0a0a0a0a0b3"


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "store": "memory"}


# ---------------------- Auth ----------------------


def test_login_accepts_handle_or_email(client):
    r = client.post("/api/v1/auth/login", json={"username": "John", "password": "password123"})
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["username"] == "john@timetracker.app"
    assert body["user"]["role"] == "staff"
    assert body["token"]

    r = client.post("/api/v1/auth/login", json={"username": "john@timetracker.app", "password": "password123"})
    assert r.status_code == 200


def test_login_rejects_bad_password(client):
    r = client.post("/api/v1/auth/login", json={"username": "john", "password": "nope"})
    assert r.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_me_returns_profile(client, admin_headers):
    r = client.get("/api/v1/auth/me", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Admin User"
    assert r.json()["role"] == "admin"


def test_change_password(client, john_headers):
    r = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "wrong", "new_password": "secret99"},
        headers=john_headers,
    )
    assert r.status_code == 400

    r = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "password123", "new_password": "secret99"},
        headers=john_headers,
    )
    assert r.status_code == 200
    old = client.post("/api/v1/auth/login", json={"username": "john", "password": "password123"})
    assert old.status_code == 401
    new = client.post("/api/v1/auth/login", json={"username": "john", "password": "secret99"})
    assert new.status_code == 200


def test_change_password_enforces_min_length(client, john_headers):
    r = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "password123", "new_password": "123"},
        headers=john_headers,
    )
    assert r.status_code == 422


# ---------------------- Time tracking ----------------------


def test_time_routes_require_auth(client):
    assert client.post("/api/v1/time/clock-in").status_code == 401
    assert client.get("/api/v1/dashboard").status_code == 401


def test_full_working_day(client, clock, john_headers):
    r = client.post("/api/v1/time/clock-in", headers=john_headers)
    assert r.status_code == 200
    entry = r.json()
    assert entry["status"] == "active"
    assert entry["date"] == "2024-03-04"
    assert entry["clock_in"] == "09:00"
    assert entry["clock_out"] is None
    assert entry["total_hours"] is None

    clock.set(12, 0)
    r = client.post("/api/v1/time/break/start", headers=john_headers)
    assert r.status_code == 200
    assert r.json()["start_time"] == "12:00"

    r = client.get("/api/v1/time/active", headers=john_headers)
    assert r.json()["on_break"] is True

    clock.set(12, 30)
    r = client.post("/api/v1/time/break/end", headers=john_headers)
    assert r.status_code == 200
    assert r.json()["duration"] == 30
    assert r.json()["end_time"] == "12:30"

    clock.set(17, 0)
    r = client.post("/api/v1/time/clock-out", headers=john_headers)
    assert r.status_code == 200
    done = r.json()
    assert done["status"] == "completed"
    assert done["clock_out"] == "17:00"
    assert done["break_minutes"] == 30
    assert done["total_hours"] == 7.5

    r = client.get("/api/v1/time/active", headers=john_headers)
    assert r.status_code == 200
    assert r.json() is None


def test_double_clock_in_returns_conflict_code(client, john_headers):
    assert client.post("/api/v1/time/clock-in", headers=john_headers).status_code == 200
    r = client.post("/api/v1/time/clock-in", headers=john_headers)
    assert r.status_code == 409
    assert r.json()["code"] == "already_clocked_in"


def test_lifecycle_errors_carry_codes(client, clock, john_headers):
    r = client.post("/api/v1/time/clock-out", headers=john_headers)
    assert (r.status_code, r.json()["code"]) == (409, "no_active_session")

    client.post("/api/v1/time/clock-in", headers=john_headers)
    r = client.post("/api/v1/time/break/end", headers=john_headers)
    assert (r.status_code, r.json()["code"]) == (409, "no_break_in_progress")

    clock.advance(60)
    client.post("/api/v1/time/break/start", headers=john_headers)
    r = client.post("/api/v1/time/break/start", headers=john_headers)
    assert (r.status_code, r.json()["code"]) == (409, "break_already_in_progress")


def test_clock_out_closes_open_break(client, clock, john_headers):
    client.post("/api/v1/time/clock-in", headers=john_headers)
    clock.set(16, 30)
    client.post("/api/v1/time/break/start", headers=john_headers)
    clock.set(17, 0)
    r = client.post("/api/v1/time/clock-out", headers=john_headers)
    assert r.status_code == 200
    assert r.json()["breaks"][0]["end_time"] == "17:00"
    assert r.json()["total_hours"] == 7.5


def test_sessions_are_per_user(client, john_headers, jane_headers):
    assert client.post("/api/v1/time/clock-in", headers=john_headers).status_code == 200
    assert client.post("/api/v1/time/clock-in", headers=jane_headers).status_code == 200


def test_my_entries_lists_newest_first(client, clock, john_headers):
    for day in range(3):
        clock.set(9, 0, day_offset=1 if day else 0)
        client.post("/api/v1/time/clock-in", headers=john_headers)
        clock.set(10, 0)
        client.post("/api/v1/time/clock-out", headers=john_headers)
    r = client.get("/api/v1/time/entries/me", headers=john_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert [e["date"] for e in body["items"]] == ["2024-03-06", "2024-03-05", "2024-03-04"]

    r = client.get("/api/v1/time/entries/me", params={"from": "2024-03-05", "limit": 1}, headers=john_headers)
    assert r.json()["total"] == 2
    assert len(r.json()["items"]) == 1


def test_entries_range_must_be_ordered(client, john_headers):
    r = client.get(
        "/api/v1/time/entries/me",
        params={"from": "2024-03-10", "to": "2024-03-01"},
        headers=john_headers,
    )
    assert r.status_code == 400


def test_all_entries_is_admin_only(client, john_headers, jane_headers, admin_headers):
    client.post("/api/v1/time/clock-in", headers=john_headers)
    client.post("/api/v1/time/clock-in", headers=jane_headers)
    assert client.get("/api/v1/time/entries", headers=john_headers).status_code == 403

    r = client.get("/api/v1/time/entries", headers=admin_headers)
    assert r.json()["total"] == 2
    r = client.get("/api/v1/time/entries", params={"user_id": JANE_ID}, headers=admin_headers)
    assert [e["user_id"] for e in r.json()["items"]] == [JANE_ID]


def test_user_entries_respect_scope(client, john_headers, admin_headers):
    client.post("/api/v1/time/clock-in", headers=john_headers)
    assert client.get(f"/api/v1/time/entries/user/{JANE_ID}", headers=john_headers).status_code == 403
    r = client.get(f"/api/v1/time/entries/user/{JOHN_ID}", headers=john_headers)
    assert r.json()["total"] == 1
    r = client.get(f"/api/v1/time/entries/user/{JOHN_ID}", headers=admin_headers)
    assert r.json()["total"] == 1


# ---------------------- Dashboard & reports ----------------------


def test_dashboard_while_on_break(client, clock, john_headers):
    client.post("/api/v1/time/clock-in", headers=john_headers)
    clock.set(11, 0)
    client.post("/api/v1/time/break/start", headers=john_headers)
    clock.set(11, 20)
    r = client.get("/api/v1/dashboard", headers=john_headers)
    assert r.status_code == 200
    d = r.json()
    assert d["today"] == "2024-03-04"
    assert d["week_start"] == "2024-03-04"
    assert d["is_clocked_in"] is True
    assert d["on_break"] is True
    assert d["live_break_minutes"] == 20
    assert d["live_hours"] == 2.0
    assert d["today_hours"] == 0.0
    assert d["open_break"]["start_time"] == "11:00"


def test_dashboard_when_idle(client, john_headers):
    d = client.get("/api/v1/dashboard", headers=john_headers).json()
    assert d["is_clocked_in"] is False
    assert d["active_entry"] is None
    assert d["live_hours"] == 0.0


def _work(client, clock, headers, day_offset, start, end):
    clock.set(start, 0, day_offset=day_offset)
    client.post("/api/v1/time/clock-in", headers=headers)
    clock.set(end, 0)
    client.post("/api/v1/time/clock-out", headers=headers)


def test_day_and_week_reports(client, clock, john_headers):
    # Offsets are relative to the previous working day
    _work(client, clock, john_headers, 0, 9, 13)   # Mon 4h
    _work(client, clock, john_headers, 2, 9, 11)   # Wed 2h
    _work(client, clock, john_headers, 5, 9, 17)   # next Mon 8h

    r = client.get("/api/v1/reports/day", params={"date": "2024-03-06"}, headers=john_headers)
    assert r.status_code == 200
    assert r.json()["total_hours"] == 2.0
    assert len(r.json()["entries"]) == 1

    r = client.get("/api/v1/reports/week", params={"week_start": "2024-03-07"}, headers=john_headers)
    week = r.json()
    assert week["week_start"] == "2024-03-04"
    assert week["week_end"] == "2024-03-10"
    assert week["total_hours"] == 6.0
    assert [d["total_hours"] for d in week["days"]] == [4.0, 0.0, 2.0, 0.0, 0.0, 0.0, 0.0]


def test_range_report(client, clock, john_headers):
    _work(client, clock, john_headers, 0, 9, 12)
    _work(client, clock, john_headers, 1, 9, 10)
    r = client.get("/api/v1/reports/range", params={"from": "2024-03-04", "to": "2024-03-05"}, headers=john_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["total_hours"] == 4.0
    assert len(body["days"]) == 2
    assert len(body["entries"]) == 2

    r = client.get("/api/v1/reports/range", params={"from": "2024-03-05", "to": "2024-03-04"}, headers=john_headers)
    assert r.status_code == 400
    r = client.get("/api/v1/reports/range", params={"from": "2023-01-01", "to": "2024-03-04"}, headers=john_headers)
    assert r.status_code == 400


def test_reports_for_other_users_need_admin(client, clock, john_headers, admin_headers):
    _work(client, clock, john_headers, 0, 9, 12)
    r = client.get("/api/v1/reports/day", params={"user_id": JOHN_ID}, headers=admin_headers)
    assert r.json()["total_hours"] == 3.0
    r = client.get("/api/v1/reports/day", params={"user_id": JANE_ID}, headers=john_headers)
    assert r.status_code == 403


def test_summary_lists_every_user(client, clock, john_headers, jane_headers, admin_headers):
    _work(client, clock, john_headers, 0, 9, 12)
    clock.set(9, 0, day_offset=1)
    client.post("/api/v1/time/clock-in", headers=jane_headers)

    assert client.get("/api/v1/reports/summary", headers=john_headers).status_code == 403

    r = client.get("/api/v1/reports/summary", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["start"] == "2024-03-04"
    assert body["end"] == "2024-03-10"
    assert body["total_hours"] == 3.0
    rows = {u["user_id"]: u for u in body["users"]}
    assert len(rows) == 3
    assert rows[JOHN_ID]["total_hours"] == 3.0
    assert rows[JOHN_ID]["name"] == "John Doe"
    assert rows[JANE_ID]["active"] is True
    assert rows[JANE_ID]["entries"] == 0
