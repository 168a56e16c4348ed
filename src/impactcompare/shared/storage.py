"""Comparison history — a JSON file holding every saved comparison.

The pipeline never touches this; the CLI stores finished comparisons here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from impactcompare.schemas.pipeline import Comparison

logger = logging.getLogger(__name__)


class ComparisonStore:
    """Key-value store of ``Comparison`` records keyed by ``id``."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def list_all(self) -> list[Comparison]:
        """All stored comparisons, oldest first.

        A missing or corrupt file reads as empty history.
        """
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text())
        except json.JSONDecodeError as exc:
            logger.warning("History file %s is corrupt, ignoring it: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            logger.warning("History file %s is not a list, ignoring it", self.path)
            return []

        comparisons: list[Comparison] = []
        for entry in raw:
            try:
                comparisons.append(Comparison.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping unreadable history entry: %s", exc)
        return comparisons

    def get(self, comparison_id: str) -> Comparison | None:
        for comparison in self.list_all():
            if comparison.id == comparison_id:
                return comparison
        return None

    def save(self, comparison: Comparison) -> None:
        """Insert, or replace the entry with the same id in place."""
        comparisons = self.list_all()
        for i, existing in enumerate(comparisons):
            if existing.id == comparison.id:
                comparisons[i] = comparison
                break
        else:
            comparisons.append(comparison)
        self._write(comparisons)

    def delete(self, comparison_id: str) -> bool:
        """Remove a comparison; returns False if the id was unknown."""
        comparisons = self.list_all()
        kept = [c for c in comparisons if c.id != comparison_id]
        if len(kept) == len(comparisons):
            return False
        self._write(kept)
        return True

    def _write(self, comparisons: list[Comparison]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [c.model_dump(mode="json", by_alias=True) for c in comparisons]
        self.path.write_text(json.dumps(payload, indent=2))
