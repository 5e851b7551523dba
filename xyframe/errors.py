from __future__ import annotations


class FrameConfigError(ValueError):
    """Raised for invalid frame configuration (sizes, orientations, line types, config files)."""
