"""Shelf scan pipeline."""

from shelfsnap.pipeline.scan_pipeline import ScanPipeline, ScanResult

__all__ = ["ScanPipeline", "ScanResult"]
