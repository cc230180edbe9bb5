"""Reporting utilities for sgdnet training runs."""

from .metrics import CsvSink, EpochHistory, JsonlSink
from .plots import PlotAdapter

__all__ = ["CsvSink", "EpochHistory", "JsonlSink", "PlotAdapter"]
