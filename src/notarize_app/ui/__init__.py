"""UI components for the notarization tool."""

from notarize_app.ui.protocol import PipelineUI
from notarize_app.ui.simple import SimpleUI

__all__ = ["PipelineUI", "SimpleUI"]
