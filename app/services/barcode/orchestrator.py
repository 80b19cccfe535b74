"""
Fallback orchestrator across barcode sources.

Sources are queried one at a time in a fixed priority order and the first
match wins; a later source is never started once an earlier one matched.
"""

from typing import List, Sequence
import structlog

from .interfaces import IBarcodeSource, FallbackResult, SourceOutcome

logger = structlog.get_logger(__name__)


class FallbackOrchestrator:
    """
    Priority-ordered, first-success-wins coordinator.

    Pattern : Chain of Responsibility
    """

    def __init__(self, sources: Sequence[IBarcodeSource]):
        if not sources:
            raise ValueError("FallbackOrchestrator needs at least one source")
        self._sources: List[IBarcodeSource] = list(sources)

    @property
    def sources(self) -> List[IBarcodeSource]:
        return list(self._sources)

    @property
    def worst_case_latency(self) -> float:
        """Seconds a fully cold, fully failing resolution can take."""
        return sum(source.timeout for source in self._sources)

    async def resolve_with_fallback(self, identifier: str) -> FallbackResult:
        """
        Query the sources in order and stop at the first match.

        Args:
            identifier: Normalized product code

        Returns:
            FallbackResult holding the first match, or no result (NoMatch)
            when every source answered NoMatch or failed transiently
        """
        attempts: List[SourceOutcome] = []

        for source in self._sources:
            outcome = await source.resolve(identifier)
            attempts.append(outcome)

            if outcome.is_found:
                logger.info(
                    "Product found",
                    identifier=identifier,
                    source=outcome.source,
                    confidence_tier=outcome.result.confidence_tier.value,
                    attempts=len(attempts)
                )
                return FallbackResult(result=outcome.result, attempts=attempts)

        fallback = FallbackResult(result=None, attempts=attempts)

        if fallback.all_sources_unavailable:
            logger.warning(
                "All barcode sources unavailable",
                identifier=identifier,
                causes={a.source: a.cause for a in attempts}
            )
        else:
            logger.info(
                "Product not found in any source",
                identifier=identifier,
                statuses={a.source: a.status.value for a in attempts}
            )

        return fallback
