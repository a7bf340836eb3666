"""Receipt Splitter backend: auth, receipt OCR/structuring and storage API."""

__version__ = "1.0.0"
