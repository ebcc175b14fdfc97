"""Exporters: IR to OpenAPI documents.

* :class:`ExporterRegistry`, :func:`default_exporters` -- version lookup.
* :class:`BaseExporter` -- shared walk; subclass it for new versions.
* :class:`OAS2Exporter`, :class:`OAS30Exporter`, :class:`OAS31Exporter`.
"""

from oasforge.exporter.base import BaseExporter, RefTracker, compact, sanitize_name
from oasforge.exporter.oas2 import OAS2Exporter
from oasforge.exporter.oas3 import OAS30Exporter
from oasforge.exporter.oas31 import OAS31Exporter
from oasforge.exporter.registry import ExporterRegistry, default_exporters

__all__ = [
    "BaseExporter",
    "ExporterRegistry",
    "OAS2Exporter",
    "OAS30Exporter",
    "OAS31Exporter",
    "RefTracker",
    "compact",
    "default_exporters",
    "sanitize_name",
]
