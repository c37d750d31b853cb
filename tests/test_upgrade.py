# tests/test_upgrade.py

from __future__ import annotations


def test_job_levels_are_public(client) -> None:
    levels = client.get("/api/job-levels").json()
    assert list(levels) == ["trainee", "junior", "senior", "expert", "master"]
    assert levels["senior"]["perTaskReward"] == 1000
    assert levels["senior"]["requiredInvestment"] == 250000


def test_new_user_starts_as_trainee(client, user_headers) -> None:
    data = client.get("/api/user/data", headers=user_headers).json()
    assert data["jobLevel"] == "trainee"
    assert data["perTaskEarning"] == 500
    assert data["dailyTaskQuota"] == 5
    assert data["personalWallet"] == 0
    assert data["username"] == "alice"


def test_investment_below_requirement_rejected(client, user_headers) -> None:
    res = client.post(
        "/api/user/upgrade-job",
        json={"targetLevel": "senior", "investmentAmount": 200000},
        headers=user_headers,
    )
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Minimum investment for senior level is UGX 250,000"
    assert body["details"] == {"requiredInvestment": 250000}
    assert client.get("/api/user/data", headers=user_headers).json()["jobLevel"] == "trainee"


def test_unknown_level_rejected(client, user_headers) -> None:
    res = client.post(
        "/api/user/upgrade-job",
        json={"targetLevel": "wizard", "investmentAmount": 10**7},
        headers=user_headers,
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid job level"


def test_upgrade_raises_later_rewards(client, user_headers, task_id) -> None:
    res = client.post(
        "/api/user/upgrade-job",
        json={"targetLevel": "senior", "investmentAmount": 250000},
        headers=user_headers,
    )
    assert res.status_code == 200, res.text
    assert res.json() == {"message": "Job level upgraded to senior", "jobLevel": "senior", "perTaskEarning": 1000}

    data = client.get("/api/user/data", headers=user_headers).json()
    assert data["jobLevel"] == "senior"
    # the investment is only checked, never deducted
    assert data["personalWallet"] == 0

    done = client.post(f"/api/tasks/{task_id}/complete", headers=user_headers).json()
    assert done["earnings"] == 1000
    assert done["jobLevel"] == "senior"
    assert done["newBalance"] == 1000


def test_upgrade_waits_for_wallet_lock(client, user_headers, fake_redis) -> None:
    user_id = client.get("/api/user/data", headers=user_headers).json()["userId"]
    fake_redis.store[f"lock:wallet:{user_id}"] = "1"
    res = client.post(
        "/api/user/upgrade-job",
        json={"targetLevel": "junior", "investmentAmount": 100000},
        headers=user_headers,
    )
    assert res.status_code == 429
    assert res.json()["code"] == "WALLET_BUSY"
