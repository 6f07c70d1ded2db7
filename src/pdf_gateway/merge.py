from __future__ import annotations

from typing import Iterable, Sequence

from loguru import logger

from .backends import BackendError, PdfMerger
from .detection import ensure_convertible
from .errors import BackendUnavailable, ConversionFailure, EmptyInput, ValidationFailure
from .models import ConversionOutcome, ConversionType, Deliverable, InputItem
from .utils import timestamped_name


class MergeOrchestrator:
    def __init__(self, merger: PdfMerger, *, filename_prefix: str = "converted") -> None:
        self._merger = merger
        self._filename_prefix = filename_prefix

    def gate(self, items: Iterable[InputItem], conversion_type: ConversionType) -> None:
        """Reject inconvertible inputs before any backend call is made."""

        for item in items:
            ensure_convertible(item, conversion_type)

    def assemble(
        self, outcomes: Sequence[ConversionOutcome], *, filename_prefix: str | None = None
    ) -> Deliverable:
        if not outcomes:
            raise EmptyInput("A request must reference at least one item")
        ordered = sorted(outcomes, key=lambda outcome: outcome.index)
        if [outcome.index for outcome in ordered] != list(range(len(ordered))):
            raise ValidationFailure("Every input position must yield exactly one outcome")

        for outcome in ordered:
            if not outcome.ok:
                endpoints = ", ".join(outcome.endpoints) or "none"
                reason = f"{outcome.detail or 'unknown error'} (attempted: {endpoints})"
                # a lone item has nothing to assemble; its backend failure is the answer
                if len(ordered) == 1 and outcome.error_code == BackendUnavailable.code:
                    raise BackendUnavailable(reason)
                raise ConversionFailure(outcome.index, reason, cause_code=outcome.error_code)

        filename = timestamped_name(filename_prefix or self._filename_prefix)
        if len(ordered) == 1:
            return Deliverable(content=ordered[0].content or b"", filename=filename, item_count=1)

        logger.debug(f"[Merge] Merging {len(ordered)} documents")
        try:
            merged = self._merger.merge([outcome.content or b"" for outcome in ordered])
        except BackendError as exc:
            raise BackendUnavailable(f"PDF merge failed: {exc}") from exc
        return Deliverable(content=merged, filename=filename, item_count=len(ordered))


__all__ = ["MergeOrchestrator"]
