"""Service layer for the print service"""

from .layout_service import LayoutService
from .preview_service import PreviewService
from .render_service import RenderService
from .source_service import SourceService

__all__ = ['LayoutService', 'PreviewService', 'RenderService', 'SourceService']
