from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple


class Payload(dict):
    """Ordered request body/query where unset (None) values are left out.

    `False`, `0` and empty strings are real values and are kept.
    """

    def add(self, key: str, value: Any) -> "Payload":
        if value is not None:
            self[key] = value
        return self

    def extend(self, pairs: Iterable[Tuple[str, Any]]) -> "Payload":
        for key, value in pairs:
            self.add(key, value)
        return self


def query_params(**params: Optional[Any]) -> Dict[str, str]:
    return {k: str(v) for k, v in Payload().extend(params.items()).items()}
