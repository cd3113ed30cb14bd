"""Infrastructure layer: workbook backend, configuration loading, logging."""

from .config_loader import load_options
from .logging_config import setup_logging
from .workbook import OpenpyxlWorkbook, WorkbookBackend

__all__ = ["OpenpyxlWorkbook", "WorkbookBackend", "load_options", "setup_logging"]
