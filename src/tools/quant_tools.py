from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from src.utils.quant_engine import project_account, project_goal
from src.utils.quant_models import AccountSnapshot


def _snapshot(payload: Dict[str, Any]) -> AccountSnapshot:
    p = dict(payload or {})

    # map common aliases -> canonical AccountSnapshot fields
    if "starting_balance" not in p and "startingBalance" in p:
        p["starting_balance"] = p.pop("startingBalance")

    if "interest_rate" not in p and "interestRate" in p:
        p["interest_rate"] = p.pop("interestRate")

    if "compound_frequency" not in p and "compoundFrequency" in p:
        p["compound_frequency"] = p.pop("compoundFrequency")

    if "monthly_contribution" not in p and "monthlyContribution" in p:
        p["monthly_contribution"] = p.pop("monthlyContribution")

    if "goal" not in p:
        kind = p.pop("goal_type", None) or p.pop("goalType", None)
        target_amount = p.pop("target_amount", None) or p.pop("targetAmount", None)
        target_date = p.pop("target_date", None) or p.pop("targetDate", None)
        if kind is None:
            kind = "amount" if target_amount else "date" if target_date else "default"
        if kind == "amount":
            p["goal"] = {"kind": "amount", "target_amount": target_amount}
        elif kind == "date":
            p["goal"] = {"kind": "date", "target_date": target_date}
        else:
            p["goal"] = {"kind": "default"}

    return AccountSnapshot(**{k: v for k, v in p.items() if k in AccountSnapshot.model_fields})


def tool_project_account(payload: Dict[str, Any], months: int, *, now: datetime) -> Dict[str, Any]:
    points = project_account(_snapshot(payload), months, now=now)
    return {"months": months, "points": [pt.model_dump(mode="json") for pt in points]}


def tool_compute_goal_projection(payload: Dict[str, Any], *, now: datetime, default_months: int) -> Dict[str, Any]:
    snap = _snapshot(payload)
    out = project_goal(snap, now=now, default_months=default_months)
    return {"goal_type": snap.goal.kind, **out.model_dump()}
