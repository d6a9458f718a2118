"""Scheduled report execution and delivery.

This package provides:
- Render format registry (formats.py)
- Task and artifact models (models.py)
- SOAP transport with dialect fallback (soap.py)
- Report execution session (session.py)
- Task resolution with local fallback (resolver.py)
- Local persistence and SFTP/email routing (delivery.py)
- Run orchestration (orchestrator.py)
- Wiring from settings (dependencies.py)
"""

from __future__ import annotations

from .formats import RenderFormat, parse_format
from .models import DeliveryMethod, RenderedArtifact, ReportTask

__all__ = [
    "DeliveryMethod",
    "RenderFormat",
    "RenderedArtifact",
    "ReportTask",
    "parse_format",
]
