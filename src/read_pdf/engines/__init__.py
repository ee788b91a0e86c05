from .base import EnginePage, EngineTextRun, PdfLayoutEngine
from .pypdfium2_engine import Pypdfium2Engine

__all__ = ["EnginePage", "EngineTextRun", "PdfLayoutEngine", "Pypdfium2Engine"]
