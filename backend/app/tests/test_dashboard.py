"""
Tests for the HTTP surface, driving the full request -> engine path.
"""


def register(client, username):
    response = client.post(
        "/api/users",
        json={"username": username, "email": f"{username}@example.com"}
    )
    assert response.status_code == 201
    return response.json()["id"]


def as_user(user_id):
    return {"X-User-Id": str(user_id)}


def setup_household(client):
    alice, bob, carol = (register(client, name) for name in ("alice", "bob", "carol"))
    response = client.post(
        "/api/groups",
        json={"name": "House", "member_ids": [bob, carol]},
        headers=as_user(alice)
    )
    assert response.status_code == 201
    return alice, bob, carol, response.json()["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_dashboard_requires_known_user(client):
    assert client.get("/api/dashboard/summary", headers=as_user(999)).status_code == 401
    assert client.get("/api/dashboard/summary").status_code == 422


def test_dashboard_end_to_end(client):
    alice, bob, carol, group_id = setup_household(client)

    response = client.post(
        "/api/expenses",
        json={"amount": "150", "group_id": group_id, "description": "Groceries"},
        headers=as_user(alice)
    )
    assert response.status_code == 201
    client.post(
        "/api/expenses",
        json={"amount": "60", "group_id": group_id, "participant_ids": [bob, carol]},
        headers=as_user(bob)
    )
    client.post(
        "/api/expenses",
        json={"amount": "12.40", "category": "Coffee"},
        headers=as_user(alice)
    )

    settlement = client.post(
        "/api/settlements/request",
        json={"creditor_id": alice, "amount": "50", "group_id": group_id},
        headers=as_user(carol)
    ).json()
    accepted = client.post(f"/api/settlements/{settlement['id']}/accept", headers=as_user(alice))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "completed"

    response = client.get("/api/dashboard/summary", headers=as_user(alice))
    assert response.status_code == 200
    data = response.json()

    assert set(data["net_balances"]) == {f"{bob}:{alice}", f"{carol}:{bob}"}
    edge = data["net_balances"][f"{bob}:{alice}"]
    assert edge["amount"] == 50.0
    assert edge["debtor_info"]["username"] == "bob"
    assert edge["creditor_info"]["is_you"] is True
    assert data["total_owed_to_user"] == 50.0
    assert data["total_owed"] == 0.0
    assert data["personal_monthly_total"] == 12.4
    assert data["categories"] == {"Coffee": 12.4}
    assert data["group_summaries"][0]["group_name"] == "House"
    assert data["group_summaries"][0]["you_paid_this_month"] == 150.0
    assert data["skipped_count"] == 0


def test_settlement_errors_are_mapped(client):
    alice, bob, _, group_id = setup_household(client)
    settlement = client.post(
        "/api/settlements/request",
        json={"creditor_id": alice, "amount": "10", "group_id": group_id},
        headers=as_user(bob)
    ).json()

    forbidden = client.post(f"/api/settlements/{settlement['id']}/accept", headers=as_user(bob))
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "FORBIDDEN"

    rejected = client.post(
        f"/api/settlements/{settlement['id']}/reject",
        json={"reason": "never received"},
        headers=as_user(alice)
    )
    assert rejected.json()["rejection_reason"] == "never received"

    again = client.post(f"/api/settlements/{settlement['id']}/accept", headers=as_user(alice))
    assert again.status_code == 409

    missing = client.post("/api/settlements/9999/accept", headers=as_user(alice))
    assert missing.status_code == 404


def test_expense_in_foreign_group_rejected(client):
    alice, _, _, group_id = setup_household(client)
    dave = register(client, "dave")
    response = client.post(
        "/api/expenses",
        json={"amount": "20", "group_id": group_id},
        headers=as_user(dave)
    )
    assert response.status_code == 403
    assert client.get("/api/groups/%d" % group_id, headers=as_user(alice)).status_code == 200


def add_expense(client, user_id, **body):
    response = client.post("/api/expenses", json=body, headers=as_user(user_id))
    assert response.status_code == 201
    return response.json()["id"]


def test_summary_recomputed_after_writes(client):
    alice, bob, _, group_id = setup_household(client)
    first = client.get("/api/dashboard/summary", headers=as_user(alice)).json()
    assert first["net_balances"] == {}

    expense_id = add_expense(client, alice, amount="30", group_id=group_id, participant_ids=[bob])
    second = client.get("/api/dashboard/summary", headers=as_user(alice)).json()
    assert second["net_balances"][f"{bob}:{alice}"]["amount"] == 15.0

    client.put(f"/api/expenses/{expense_id}", json={"amount": "60"}, headers=as_user(alice))
    third = client.get("/api/dashboard/summary", headers=as_user(alice)).json()
    assert third["net_balances"][f"{bob}:{alice}"]["amount"] == 30.0


def test_list_expenses_newest_first(client):
    alice, bob, _, group_id = setup_household(client)
    lunch = add_expense(client, alice, amount="12", category="Food")
    rent = add_expense(client, bob, amount="900", group_id=group_id)
    add_expense(client, bob, amount="5", category="Coffee")

    response = client.get("/api/expenses", headers=as_user(alice))
    assert response.status_code == 200
    # bob's personal expense is not visible to alice
    assert [e["id"] for e in response.json()] == [rent, lunch]
    assert response.json()[0]["amount"] == 900.0

    limited = client.get("/api/expenses?limit=1", headers=as_user(alice)).json()
    assert [e["id"] for e in limited] == [rent]


def test_group_expenses_listing(client):
    alice, bob, _, group_id = setup_household(client)
    first = add_expense(client, alice, amount="40", group_id=group_id)
    second = add_expense(client, bob, amount="20", group_id=group_id, participant_ids=[alice])
    add_expense(client, alice, amount="7")

    response = client.get(f"/api/groups/{group_id}/expenses", headers=as_user(bob))
    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == [second, first]
    assert response.json()[0]["participant_ids"] == [alice]

    dave = register(client, "dave")
    assert client.get(f"/api/groups/{group_id}/expenses", headers=as_user(dave)).status_code == 403


def test_update_expense(client):
    alice, bob, carol, group_id = setup_household(client)
    expense_id = add_expense(client, alice, amount="90", group_id=group_id)

    forbidden = client.put(f"/api/expenses/{expense_id}", json={"amount": "10"}, headers=as_user(bob))
    assert forbidden.status_code == 403

    dave = register(client, "dave")
    outsider = client.put(
        f"/api/expenses/{expense_id}",
        json={"participant_ids": [dave]},
        headers=as_user(alice)
    )
    assert outsider.status_code == 400
    assert outsider.json()["code"] == "VALIDATION_ERROR"

    assert client.put(
        f"/api/expenses/{expense_id}", json={"amount": "0"}, headers=as_user(alice)
    ).status_code == 422

    response = client.put(
        f"/api/expenses/{expense_id}",
        json={"description": "Dinner", "participant_ids": [bob]},
        headers=as_user(alice)
    )
    assert response.status_code == 200
    data = response.json()
    assert data["description"] == "Dinner"
    assert data["participant_ids"] == [bob]
    assert data["amount"] == 90.0

    summary = client.get("/api/dashboard/summary", headers=as_user(alice)).json()
    assert set(summary["net_balances"]) == {f"{bob}:{alice}"}
    assert summary["net_balances"][f"{bob}:{alice}"]["amount"] == 45.0

    # an empty list puts the whole group back on the expense
    client.put(f"/api/expenses/{expense_id}", json={"participant_ids": []}, headers=as_user(alice))
    summary = client.get("/api/dashboard/summary", headers=as_user(alice)).json()
    assert summary["net_balances"][f"{carol}:{alice}"]["amount"] == 30.0


def test_list_rename_and_delete_group(client):
    alice, bob, _, group_id = setup_household(client)
    other = client.post("/api/groups", json={"name": "Trip"}, headers=as_user(bob)).json()["id"]

    groups = client.get("/api/groups", headers=as_user(bob)).json()
    assert [g["id"] for g in groups] == [group_id, other]
    assert [g["id"] for g in client.get("/api/groups", headers=as_user(alice)).json()] == [group_id]

    assert client.put(
        f"/api/groups/{group_id}", json={"name": "Flat"}, headers=as_user(bob)
    ).status_code == 403
    renamed = client.put(f"/api/groups/{group_id}", json={"name": " Flat "}, headers=as_user(alice))
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Flat"
    assert client.put(
        f"/api/groups/{group_id}", json={"name": "  "}, headers=as_user(alice)
    ).status_code == 400

    add_expense(client, alice, amount="30", group_id=group_id)
    assert client.delete(f"/api/groups/{group_id}", headers=as_user(bob)).status_code == 403
    assert client.delete(f"/api/groups/{group_id}", headers=as_user(alice)).status_code == 204

    assert client.get(f"/api/groups/{group_id}", headers=as_user(alice)).status_code == 404
    assert client.get("/api/expenses", headers=as_user(alice)).json() == []
    summary = client.get("/api/dashboard/summary", headers=as_user(alice)).json()
    assert summary["net_balances"] == {}
    assert summary["group_summaries"] == []


def test_group_settlements_listing(client):
    alice, bob, carol, group_id = setup_household(client)
    first = client.post(
        "/api/settlements/request",
        json={"creditor_id": alice, "amount": "10", "group_id": group_id},
        headers=as_user(bob)
    ).json()
    second = client.post(
        "/api/settlements/request",
        json={"creditor_id": bob, "amount": "4.50", "group_id": group_id},
        headers=as_user(carol)
    ).json()
    client.post(
        "/api/settlements/request",
        json={"creditor_id": alice, "amount": "3"},
        headers=as_user(carol)
    )

    response = client.get(f"/api/settlements/group/{group_id}", headers=as_user(alice))
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [second["id"], first["id"]]
    assert response.json()[0]["amount"] == 4.5

    dave = register(client, "dave")
    assert client.get(f"/api/settlements/group/{group_id}", headers=as_user(dave)).status_code == 403


def test_recent_expenses_feed(client):
    alice, bob, _, group_id = setup_household(client)
    coffee = add_expense(client, alice, amount="3", category="Coffee")
    books = add_expense(client, alice, amount="25", category="Books")
    rent = add_expense(client, bob, amount="900", group_id=group_id)
    power = add_expense(client, alice, amount="60", group_id=group_id)

    feed = client.get("/api/dashboard/recent", headers=as_user(alice)).json()
    assert [e["id"] for e in feed["personal_expenses"]] == [books, coffee]
    assert [e["id"] for e in feed["group_expenses"]] == [power, rent]

    short = client.get("/api/dashboard/recent?limit=1", headers=as_user(alice)).json()
    assert [e["id"] for e in short["personal_expenses"]] == [books]
    assert [e["id"] for e in short["group_expenses"]] == [power]

    bob_feed = client.get("/api/dashboard/recent", headers=as_user(bob)).json()
    assert bob_feed["personal_expenses"] == []
