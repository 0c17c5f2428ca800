"""Synthetic storage snapshots for demos and tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np

ACTIVITY_TYPES = [
    "devotional_read",
    "teaching_viewed",
    "prayer_submitted",
    "event_checkin",
    "group_message",
    "sermon_note",
]

SEARCH_TOPICS = [
    "fasting",
    "marriage",
    "grief",
    "spiritual gifts",
    "prophecy",
    "forgiveness",
    "anxiety",
]


def generate_sample_snapshot(
    n_members: int = 100,
    seed: int = 42,
    now: Optional[datetime] = None,
) -> dict:
    """
    Generate a realistic snapshot for InMemoryStorage.

    Member mix:
    - ~40% engaged (activity in both windows, most give)
    - ~35% fading (activity tapering off 20-80 days ago)
    - ~25% dormant (last seen months ago or never)
    """
    np.random.seed(seed)
    now = now or datetime.now(timezone.utc)

    archetypes = np.random.choice(
        ["engaged", "fading", "dormant"],
        size=n_members,
        p=[0.40, 0.35, 0.25],
    )

    members, activity, donations = [], [], []
    engagement_scores = {}

    for i, archetype in enumerate(archetypes):
        member_id = f"MEMBER_{i:04d}"
        members.append({
            "id": member_id,
            "first_name": f"First{i}",
            "last_name": f"Last{i}",
            "email": f"member{i}@example.org",
            "tier": str(np.random.choice(["free", "partner", "covenant"], p=[0.6, 0.3, 0.1])),
            "created_at": now - timedelta(days=int(np.random.randint(60, 900))),
        })

        if archetype == "engaged":
            ages = np.random.uniform(0, 60, size=np.random.randint(8, 40))
            give_age = np.random.uniform(0, 40) if np.random.random() < 0.7 else None
            score = float(np.random.randint(50, 100))
        elif archetype == "fading":
            ages = np.random.uniform(20, 80, size=np.random.randint(2, 12))
            give_age = np.random.uniform(60, 200) if np.random.random() < 0.5 else None
            score = float(np.random.randint(10, 60))
        else:
            count = np.random.randint(0, 4)
            ages = np.random.uniform(95, 300, size=count)
            give_age = np.random.uniform(120, 400) if np.random.random() < 0.3 else None
            score = None

        # Favour evenings for a recognisable contact rhythm
        hour_offsets = np.random.choice([0, 1, 2], size=len(ages), p=[0.6, 0.25, 0.15])
        for age, hour_offset in zip(ages, hour_offsets):
            ts = (now - timedelta(days=float(age))).replace(hour=19 + int(hour_offset), minute=0)
            if ts >= now:
                ts -= timedelta(days=1)
            activity.append({
                "member_id": member_id,
                "activity_type": str(np.random.choice(ACTIVITY_TYPES)),
                "occurred_at": ts,
            })

        if give_age is not None:
            recurring = bool(np.random.random() < 0.3)
            donations.append({
                "member_id": member_id,
                "amount": float(np.random.choice([25, 50, 100, 250])),
                "occurred_at": now - timedelta(days=float(give_age)),
                "is_recurring": recurring,
                "status": "active" if recurring and give_age < 45 else "completed",
            })
        if score is not None:
            engagement_scores[member_id] = score

    search_logs = []
    for _ in range(n_members // 2):
        topic = str(np.random.choice(SEARCH_TOPICS))
        search_logs.append({
            "query": f"  {topic.title()} " if np.random.random() < 0.3 else topic,
            "results_count": int(np.random.choice([0, 1, 2, 5, 12], p=[0.3, 0.2, 0.1, 0.2, 0.2])),
            "occurred_at": now - timedelta(days=float(np.random.uniform(0, 29))),
        })

    content = [
        {"id": f"T{i}", "title": f"Teaching {i}", "views": int(np.random.randint(10, 5000)),
         "completion_rate": round(float(np.random.uniform(0.2, 0.95)), 2)}
        for i in range(12)
    ]

    return {
        "members": members,
        "activity": activity,
        "donations": donations,
        "engagement_scores": engagement_scores,
        "search_logs": search_logs,
        "content": content,
    }
