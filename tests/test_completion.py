# tests/test_completion.py

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.exc import SQLAlchemyError

from getcash import models
from getcash.core.exceptions import NotFoundError, PersistenceError
from getcash.services import completion
from getcash.services.wallet_lock import wallet_lock

from .conftest import auth_headers


def _user_id(client, headers) -> int:
    return client.get("/api/user/data", headers=headers).json()["userId"]


def test_first_completion_credits_trainee_reward(client, user_headers, task_id) -> None:
    res = client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["earnings"] == 500
    assert body["newBalance"] == 500
    assert body["jobLevel"] == "trainee"

    data = client.get("/api/user/data", headers=user_headers).json()
    assert data["personalWallet"] == 500
    assert data["totalEarnings"] == 500
    assert data["tasksCompletedToday"] == 1


def test_repeat_completion_is_a_no_op(client, user_headers, task_id) -> None:
    client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    res = client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert res.status_code == 200
    assert res.json()["message"] == "already completed"

    data = client.get("/api/user/data", headers=user_headers).json()
    assert data["personalWallet"] == 500
    assert data["totalEarnings"] == 500
    assert client.get("/api/tasks/completed", headers=user_headers).json() == [task_id]


def test_completions_are_per_user(client, user_headers, task_id) -> None:
    bob = auth_headers(client, "bob")
    client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    res = client.post(f"/api/tasks/{task_id}/complete", headers=bob)
    assert res.json()["earnings"] == 500
    assert client.get("/api/tasks/completed", headers=bob).json() == [task_id]


def test_unknown_task_is_not_found(client, user_headers) -> None:
    res = client.post("/api/tasks/9999/complete", headers=user_headers)
    assert res.status_code == 404
    assert res.json()["message"] == "Task not found"


def test_completion_requires_token(client, task_id) -> None:
    res = client.post(f"/api/tasks/{task_id}/complete")
    assert res.status_code == 401


def test_remove_completion_keeps_credit(client, user_headers, task_id) -> None:
    client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    res = client.delete(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert res.json()["removed"] is True
    assert client.get("/api/tasks/completed", headers=user_headers).json() == []
    assert client.get("/api/user/data", headers=user_headers).json()["personalWallet"] == 500

    again = client.delete(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert again.json()["removed"] is False


def test_completing_again_after_removal_pays_nothing(client, user_headers, task_id) -> None:
    client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    client.delete(f"/api/tasks/{task_id}/complete", headers=user_headers)

    res = client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "already completed", "alreadyCompleted": True}

    data = client.get("/api/user/data", headers=user_headers).json()
    assert data["personalWallet"] == 500
    assert data["totalEarnings"] == 500
    assert data["tasksCompletedToday"] == 1
    assert client.get("/api/tasks/completed", headers=user_headers).json() == [task_id]


def test_cleaned_up_completion_is_not_paid_twice(client, db, user_headers, task_id) -> None:
    user_id = _user_id(client, user_headers)
    client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    db.query(models.CompletedTask).delete()
    db.commit()

    assert completion.complete_task(db, user_id, task_id).already_completed is True
    assert client.get("/api/user/data", headers=user_headers).json()["personalWallet"] == 500


def test_daily_quota_stops_crediting(client, user_headers, admin_headers) -> None:
    # three starter tasks are seeded; trainee quota is five
    for i in range(3):
        client.post("/api/tasks", json={"title": f"extra {i}", "price": 500}, headers=admin_headers)
    task_ids = [t["id"] for t in client.get("/api/tasks").json()]
    assert len(task_ids) == 6

    for tid in task_ids[:5]:
        assert client.post(f"/api/tasks/{tid}/complete", headers=user_headers).status_code == 200

    res = client.post(f"/api/tasks/{task_ids[5]}/complete", headers=user_headers)
    assert res.status_code == 400
    assert "Daily task limit reached" in res.json()["message"]
    assert client.get("/api/user/data", headers=user_headers).json()["personalWallet"] == 2500
    assert task_ids[5] not in client.get("/api/tasks/completed", headers=user_headers).json()


def test_busy_wallet_lock_rejects_without_mutation(client, user_headers, task_id, fake_redis) -> None:
    user_id = _user_id(client, user_headers)
    fake_redis.store[f"lock:wallet:{user_id}"] = "1"

    res = client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert res.status_code == 429
    assert client.get("/api/user/data", headers=user_headers).json()["personalWallet"] == 0


def test_lock_is_released_after_completion(client, user_headers, task_id, fake_redis) -> None:
    user_id = _user_id(client, user_headers)
    client.post(f"/api/tasks/{task_id}/complete", headers=user_headers)
    assert f"lock:wallet:{user_id}" in fake_redis.lock_calls
    assert fake_redis.store == {}


def test_persistence_failure_leaves_wallet_unchanged(client, db, user_headers, task_id, monkeypatch) -> None:
    user_id = _user_id(client, user_headers)

    def broken_commit():
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(PersistenceError, match="Failed to mark task as completed"):
        completion.complete_task(db, user_id, task_id)
    monkeypatch.undo()

    db.expire_all()
    wallet = db.query(models.Wallet).filter(models.Wallet.user_id == user_id).one()
    assert wallet.personal_wallet == 0
    assert wallet.total_earnings == 0
    assert completion.list_completed(db, user_id) == []


def test_service_rejects_unknown_user(client, db, task_id) -> None:
    with pytest.raises(NotFoundError, match="User not found"):
        completion.complete_task(db, 424242, task_id)


def test_lock_taken_over_after_expiry_is_not_released(fake_redis) -> None:
    key = "lock:wallet:7"

    async def run() -> None:
        async with wallet_lock(fake_redis, 7):
            # our key expired and another request now holds the wallet
            fake_redis.store[key] = "other-request"

    asyncio.run(run())
    assert fake_redis.store[key] == "other-request"
