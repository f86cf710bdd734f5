"""Records, panelrc configuration and window-manager module protocol for a front panel."""

__version__ = "0.6.0"
__all__ = ["records", "scanner", "panelrc", "protocol", "wmclient"]