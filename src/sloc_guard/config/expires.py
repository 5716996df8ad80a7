"""Expiry dates on rules and overrides (``expires = "YYYY-MM-DD"``).

Expired entries keep applying; they are reported so that temporary
exemptions do not silently become permanent.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from ..exceptions import InvalidConfigError
from .models import Config


@dataclass(frozen=True)
class ExpiredRule:
    key: str
    pattern: str
    expires: date
    reason: Optional[str] = None


def parse_expires(value: str, key: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidConfigError(key, value, "expected a date in YYYY-MM-DD format")


def collect_expired_rules(config: Config, today: Optional[date] = None) -> List[ExpiredRule]:
    today = today or date.today()
    candidates = []
    for i, rule in enumerate(config.content.rules):
        candidates.append((f"content.rules[{i}]", rule.pattern, rule.expires, rule.reason))
    for i, override in enumerate(config.content.overrides):
        candidates.append((f"content.overrides[{i}]", override.path, override.expires, override.reason))
    for i, srule in enumerate(config.structure.rules):
        candidates.append((f"structure.rules[{i}]", srule.scope, srule.expires, srule.reason))
    for i, soverride in enumerate(config.structure.overrides):
        candidates.append(
            (f"structure.overrides[{i}]", soverride.path, soverride.expires, soverride.reason)
        )

    expired = []
    for key, pattern, expires, reason in candidates:
        if not expires:
            continue
        when = parse_expires(expires, f"{key}.expires")
        if when < today:
            expired.append(ExpiredRule(key=key, pattern=pattern, expires=when, reason=reason))
    return expired
