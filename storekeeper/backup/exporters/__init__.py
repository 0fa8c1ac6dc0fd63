"""Exporters that turn live collections into snapshot artifacts."""

from .collection_exporter import CollectionExporter
from .tabular_exporter import TabularExporter

__all__ = ["CollectionExporter", "TabularExporter"]
