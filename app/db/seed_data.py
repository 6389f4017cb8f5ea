"""
Sample data used to seed an empty rule store and to feed the dashboard's
analytics views. The records are intentionally loosely shaped (mixed key
spellings, missing fields) since they pass through the normalizer.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

SAMPLE_RULES: List[Dict[str, Any]] = [
    {
        "id": "1",
        "ruleId": "RL-100",
        "name": "High Value Claim",
        "description": "Flags claims whose amount is far above the policy average.",
        "category": "transaction",
        "severity": "high",
        "status": "active",
        "triggers24h": 42,
        "triggerDelta": 12.5,
        "lastUpdated": "2024-05-02T09:15:00+00:00",
        "ownerName": "Sarah Chen",
        "tags": ["amount", "claims"],
        "conditionSummary": "claim.amount > 5000",
        "logic": {
            "groups": [
                {"operator": "AND", "conditions": [{"field": "claim.amount", "operator": ">", "value": 5000}]}
            ]
        },
        "currentVersion": "v2.0",
        "versions": [
            {
                "id": "2",
                "version": "v2.0",
                "createdAt": "2024-05-02T09:15:00+00:00",
                "createdBy": "Sarah Chen",
                "notes": "Raised threshold after Q1 review",
                "isDraft": False,
                "logic_snapshot": {
                    "groups": [
                        {"operator": "AND", "conditions": [{"field": "claim.amount", "operator": ">", "value": 5000}]}
                    ]
                },
            },
            {
                "id": "1",
                "version": "v1.0",
                "createdAt": "2024-03-11T14:02:00+00:00",
                "createdBy": "Sarah Chen",
                "notes": "Initial version",
                "isDraft": False,
                "logic_snapshot": {
                    "groups": [
                        {"operator": "AND", "conditions": [{"field": "claim.amount", "operator": ">", "value": 3000}]}
                    ]
                },
            },
        ],
    },
    {
        "id": "2",
        "rule_id": "RL-101",
        "name": "Rapid Repeat Claims",
        "description": "Same claimant filing several claims within a short window.",
        "category": "velocity",
        "severity": "critical",
        "status": "active",
        "triggers_24h": 17,
        "trigger_delta": -4.0,
        "owner": "Mike Ross",
        "tags": ["velocity"],
        "condition_summary": "claims_per_claimant_7d >= 3",
        "logic": {
            "groups": [
                {"operator": "AND", "conditions": [{"field": "claimant.claims_7d", "operator": ">=", "value": 3}]}
            ]
        },
    },
    {
        "id": "3",
        "ruleId": "RL-102",
        "name": "Mismatched Provider Location",
        "description": "Provider located in a different region than the claimant.",
        "category": "identity",
        "severity": "medium",
        "status": "inactive",
        "triggers24h": 5,
        "triggerDelta": 0,
        "createdBy": "Priya Patel",
        "tags": ["geo", "provider"],
        "conditionSummary": "provider.region != claimant.region",
        "logic": {
            "groups": [
                {
                    "operator": "AND",
                    "conditions": [{"field": "provider.region", "operator": "!=", "value": "claimant.region"}],
                }
            ]
        },
    },
    {
        "id": "4",
        "ruleId": "RL-103",
        "name": "New Account Large Payout",
        "category": "account",
        "severity": "high",
        "status": "draft",
        "tags": ["account", "payout"],
        "logic": {"groups": []},
        "versions": [
            {"id": "1", "version": "v1.0", "isDraft": True, "notes": "Work in progress"},
        ],
    },
]

SAMPLE_RULE_PERFORMANCE: Dict[str, Any] = {
    "totalClaimsEvaluated": 15420,
    "flagsTriggered": 294,
    "confirmedFraud": 56,
    "falsePositiveRate": 12.4,
    "hitRate": 1.9,
    "lastEvaluated": "2 minutes ago",
    "severityDistribution": [
        {"severity": "critical", "count": 18, "percentage": 6.1},
        {"severity": "high", "count": 96, "percentage": 32.7},
        {"severity": "medium", "count": 128, "percentage": 43.5},
        {"severity": "low", "count": 52, "percentage": 17.7},
    ],
    "conditionHitMap": [
        {"condition": "claim.amount > 5000", "percentage": 64.0},
        {"condition": "claimant.claims_7d >= 3", "percentage": 21.0},
        {"condition": "provider.region != claimant.region", "percentage": 15.0},
    ],
    "decisionCounts": {"fraud": 56, "legitimate": 210, "pending": 28},
}

CLAIMANTS = ["Acme Logistics", "J. Alvarez", "Northwind Health", "K. Osei", "Blue Harbor LLC", "M. Novak"]
SEVERITIES = ["low", "medium", "high", "critical"]
DECISIONS = ["fraud", "legitimate", "pending"]

AUDIT_ACTIONS = ["rule.created", "rule.updated", "rule.deleted", "rule.published", "auth.login"]
AUDIT_ENTITIES = ["rule", "user", "system"]

def generate_trigger_trends(days: int) -> List[Dict[str, Any]]:
    """Daily trigger counts for the last `days` days, oldest first."""
    rng = random.Random(days)
    today = datetime.now(timezone.utc).date()
    trends = []
    for offset in range(days - 1, -1, -1):
        triggers = rng.randint(20, 80)
        trends.append({
            "date": (today - timedelta(days=offset)).isoformat(),
            "triggers": triggers,
            "confirmed": rng.randint(0, triggers // 4),
        })
    return trends

def generate_triggered_claims(count: int = 50) -> List[Dict[str, Any]]:
    """Synthetic claims that tripped a rule; the same collection on every call."""
    rng = random.Random(42)
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    claims = []
    for i in range(count):
        claims.append({
            "claimId": f"CLM-{10000 + i}",
            "claimant": rng.choice(CLAIMANTS),
            "amount": round(rng.uniform(250, 25000), 2),
            "severity": rng.choice(SEVERITIES),
            "decision": rng.choice(DECISIONS),
            "score": round(rng.uniform(0.1, 0.99), 2),
            "triggeredAt": (start + timedelta(hours=7 * i)).isoformat(),
        })
    return claims

def generate_audit_log_items(count: int = 75) -> List[Dict[str, Any]]:
    """Audit entries, newest first, one hour apart."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    items = []
    for i in range(1, count + 1):
        items.append({
            "id": i,
            "created_at": (now - timedelta(hours=i)).isoformat(),
            "actor_id": 1 if i % 3 == 0 else 2,
            "actor_email": "sarah@example.com" if i % 3 == 0 else "mike@example.com",
            "action": AUDIT_ACTIONS[i % len(AUDIT_ACTIONS)],
            "entity_type": AUDIT_ENTITIES[i % len(AUDIT_ENTITIES)],
            "entity_id": str(1000 + i),
            "entity_label": f"Entity {i}",
            "metadata": {"note": "Sample entry"},
        })
    return items
