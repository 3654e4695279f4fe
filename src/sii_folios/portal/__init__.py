"""Portal module.

SII folios portal workflow: response classification, form fields, step
orchestration and the service entry point.
"""

from sii_folios.portal.classifier import classify_response
from sii_folios.portal.service import obtain_folios
from sii_folios.portal.workflow import FoliosWorkflow

__all__ = ["classify_response", "obtain_folios", "FoliosWorkflow"]
