"""Content Ingest Service: normalizes web pages, PDFs and EPUBs into article records."""

__version__ = "0.1.0"
