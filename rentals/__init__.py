"""
Rental Manager core: contract and room-ad PDFs plus local alerts.

Exposes the generator and alert service so callers (CLI now, HTTP server too)
share one entry point.
"""

from .alerts import LocalAlertService
from .contract import ContractTemplate
from .documents import DocumentService
from .pdf_generator import PDFGenerator

__all__ = ["ContractTemplate", "DocumentService", "LocalAlertService", "PDFGenerator"]
