"""
Indicator Service

The indicator catalogue: each indicator names the verification methods a
responsible user must evidence once it is assigned to them.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..errors import NotFoundError, ValidationError
from ..workflow.upload_gate import normalize_method_name

logger = logging.getLogger(__name__)


def clean_method_names(methods: Iterable[str]) -> List[str]:
    """Normalize whitespace, drop blanks and keep the first of any duplicate."""
    names: List[str] = []
    seen = set()
    for raw in methods:
        name = normalize_method_name(raw)
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names


class IndicatorService:

    def __init__(self, store):
        self.store = store

    def get(self, indicator_id: str) -> Dict[str, Any]:
        doc = self.store.get_by_id("indicator", indicator_id)
        if doc is None:
            raise NotFoundError(f"Indicator {indicator_id} not found", reason="IndicatorNotFound")
        return doc

    def list_all(self, perspective_id: Optional[str] = None) -> List[Dict[str, Any]]:
        if perspective_id:
            docs = self.store.list_where("indicator", "perspective_id", perspective_id)
        else:
            docs = self.store.list_all("indicator")
        return sorted(docs, key=lambda d: (d.get("name") or "").lower())

    def create(
        self,
        name: str,
        verification_methods: Iterable[str],
        perspective_id: Optional[str] = None,
        more_information_link: Optional[str] = None,
    ) -> Dict[str, Any]:
        name = normalize_method_name(name)
        if not name:
            raise ValidationError("Indicator name is required", reason="MissingName")

        methods = clean_method_names(verification_methods)
        if not methods:
            raise ValidationError(
                "An indicator needs at least one verification method",
                reason="MissingVerificationMethods",
            )

        indicator_id = self.store.insert("indicator", {
            "name": name,
            "perspective_id": perspective_id,
            "more_information_link": (more_information_link or "").strip() or None,
            "verification_methods": methods,
        })

        logger.info(f"Indicator {indicator_id} created with {len(methods)} verification methods")
        return self.get(indicator_id)
