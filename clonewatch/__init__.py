"""clonewatch: line-based duplicate code detection for repository health scans."""

__version__ = "0.1.0"
