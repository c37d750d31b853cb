"""
Job-level tariff table.

Each tier fixes the reward credited per completed task, how many tasks a user
may complete per day, and the investment needed to upgrade into it. The table
is static; nothing writes to it at runtime.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class JobLevelTariff:
    name: str
    per_task_reward: int
    daily_task_quota: int
    required_investment: int

    def to_dict(self) -> dict:
        return {
            "perTaskReward": self.per_task_reward,
            "dailyTaskQuota": self.daily_task_quota,
            "requiredInvestment": self.required_investment,
        }


DEFAULT_JOB_LEVEL = "trainee"

JOB_LEVELS: Dict[str, JobLevelTariff] = {
    t.name: t for t in (
        JobLevelTariff("trainee", per_task_reward=500, daily_task_quota=5, required_investment=0),
        JobLevelTariff("junior", per_task_reward=750, daily_task_quota=10, required_investment=100_000),
        JobLevelTariff("senior", per_task_reward=1000, daily_task_quota=15, required_investment=250_000),
        JobLevelTariff("expert", per_task_reward=1500, daily_task_quota=20, required_investment=500_000),
        JobLevelTariff("master", per_task_reward=2500, daily_task_quota=30, required_investment=1_000_000),
    )
}


def get_tariff(level: Optional[str]) -> JobLevelTariff:
    """Tariff for ``level``; an unset level means the default tier."""
    if not level:
        return JOB_LEVELS[DEFAULT_JOB_LEVEL]
    try:
        return JOB_LEVELS[level]
    except KeyError:
        raise ValidationError("Invalid job level", {"jobLevel": level})


def tariff_table() -> dict:
    return {name: t.to_dict() for name, t in JOB_LEVELS.items()}
