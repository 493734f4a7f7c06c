"""
Evidence Share: case-event dispatch of evidence bundles to bulk print.

The bulk print pipeline lives under `evidence_share.bulk_print`; the worker
CLI is exposed as the `evidence-share-bulk-print` console script.
"""

__all__: list[str] = []
