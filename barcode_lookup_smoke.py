#!/usr/bin/env python3
"""
Manual smoke test of barcode lookup against the real providers.
Hits UPCitemdb, Open Food Facts and EAN-Search over the network, so it is not
part of the pytest suite. The cache lives in memory for the duration of the run.

Usage: python barcode_lookup_smoke.py [barcode ...]
"""

import asyncio
import sys
from pathlib import Path

# Ajouter le projet au PYTHONPATH
sys.path.insert(0, str(Path(__file__).parent))

import structlog

from app.cache.document_store import InMemoryDocumentStore
from app.core.config import settings
from app.core.logging import configure_logging
from app.services.barcode import create_barcode_lookup_service

logger = structlog.get_logger(__name__)

SAMPLE_BARCODES = [
    "5901234123457",  # EAN-13 générique
    "012345678905",   # UPC-A générique
    "3017620422003",  # Nutella, couvert par Open Food Facts
    "0051000012510",  # Coca-Cola
]


async def main(barcodes):
    configure_logging(settings.log_level)
    service = create_barcode_lookup_service(store=InMemoryDocumentStore())

    print("=== Barcode lookup smoke test ===")
    print(f"Sources: {[s.provider_name for s in service.orchestrator.sources]}")
    print(f"Worst-case cold latency: {service.worst_case_latency:.0f}s\n")

    found = 0
    try:
        for barcode in barcodes:
            outcome = await service.lookup(barcode)
            if outcome.success:
                found += 1
                result = outcome.result
                print(f"✓ {barcode}: {result.name} [{result.source}, {result.confidence_tier.value}]")
                print(f"  brand={result.brand} category={result.category}")
                print(f"  warranty: {outcome.suggested_warranty}")
            else:
                print(f"✗ {barcode}: {outcome.error_kind.value}")

        # Second pass must be served from the cache
        if barcodes:
            again = await service.lookup(barcodes[0])
            print(f"\nRepeat lookup of {barcodes[0]} cached: {again.was_cached}")
    finally:
        await service.close()

    print(f"\n🎯 {found}/{len(barcodes)} barcodes resolved")
    return found


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:] or SAMPLE_BARCODES))
