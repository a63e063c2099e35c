"""
Alias tables for the field names external sources have used over time.

Every logical field is an ordered list of candidate extractors; the first
candidate yielding a defined value wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple

from valtrust.core.models import finite_or_none


Extractor = Callable[[Mapping[str, Any]], Any]


def key(name: str) -> Extractor:
    def _get(row: Mapping[str, Any]) -> Any:
        return row.get(name)

    _get.__name__ = f"key_{name}"
    return _get


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    candidates: Tuple[Extractor, ...]
    coerce: Callable[[Any], Any] = _as_text

    @classmethod
    def keys(
        cls,
        *aliases: str,
        name: Optional[str] = None,
        coerce: Optional[Callable[[Any], Any]] = None,
    ) -> "FieldSpec":
        """Spec reading ``aliases`` in order; ``name`` defaults to the first alias."""
        return cls(
            name=name or aliases[0],
            candidates=tuple(key(a) for a in aliases),
            coerce=coerce or _as_text,
        )

    def first(self, row: Any) -> Any:
        if not isinstance(row, Mapping):
            return None
        for extract in self.candidates:
            value = self.coerce(extract(row))
            if value is not None:
                return value
        return None


VOTE_ACCOUNT = FieldSpec.keys(
    "vote_identity",
    "voteIdentity",
    "vote_identity_pubkey",
    "voteIdentityPubkey",
    "vote_identity_pubkey_str",
    "voteIdentityPubkeyStr",
    "votePubkey",
    "vote_account",
    "vote_account_pubkey",
    name="vote_account",
)

IDENTITY = FieldSpec.keys("identity_pubkey", "identity", "nodePubkey", name="identity")

TRILLIUM_DELEGATOR_TOTAL_APY = FieldSpec.keys(
    "average_delegator_total_apy",
    "delegator_total_apy",
    name="delegator_total_apy",
    coerce=finite_or_none,
)

TRILLIUM_OVERALL_TOTAL_APY = FieldSpec.keys(
    "average_total_overall_apy",
    "total_overall_apy",
    name="overall_total_apy",
    coerce=finite_or_none,
)

STAKEWIZ_TOTAL_APY = FieldSpec.keys("total_apy", "apy_estimate", coerce=finite_or_none)


def number(name: str) -> FieldSpec:
    return FieldSpec.keys(name, coerce=finite_or_none)
