import hashlib
import json
import logging
from datetime import date, datetime
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class MatchFingerprinter:
    """
    Pure logic for creating deterministic fingerprints for result caching.
    """

    @staticmethod
    def entity(entity: Mapping[str, Any]) -> str:
        """
        Hash an entity's attributes independent of key order.
        Formula: SHA256(canonical JSON of the attribute mapping)
        """
        raw_string = json.dumps(dict(entity), sort_keys=True, default=_json_default)
        return hashlib.sha256(raw_string.encode('utf-8')).hexdigest()

    @staticmethod
    def match(
        entity_a: Mapping[str, Any],
        kind_a: str,
        entity_b: Mapping[str, Any],
        kind_b: str,
        registry_fingerprint: str,
    ) -> str:
        """
        Cache key for scoring a pair under one registry snapshot.

        Scoring is symmetric, so (A, B) and (B, A) share a key.
        """
        sides = sorted([
            f"{kind_a.lower().strip()}:{MatchFingerprinter.entity(entity_a)}",
            f"{kind_b.lower().strip()}:{MatchFingerprinter.entity(entity_b)}",
        ])
        raw_string = f"{sides[0]}|{sides[1]}|{registry_fingerprint}"
        return hashlib.sha256(raw_string.encode('utf-8')).hexdigest()
