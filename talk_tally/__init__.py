"""Talk Tally - Speaking-time tracker for live sessions."""

try:
    from talk_tally._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
