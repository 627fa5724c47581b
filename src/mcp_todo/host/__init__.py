from .orchestrator import HostOrchestrator
from .renderer import FileRenderer, Renderer

__all__ = ["FileRenderer", "HostOrchestrator", "Renderer"]
