"""Read-only selectors for the obligation kernel."""

from obligation_kernel.selectors.base import BaseSelector
from obligation_kernel.selectors.document_selector import DocumentSelector, PortfolioSummary

__all__ = ["BaseSelector", "DocumentSelector", "PortfolioSummary"]
