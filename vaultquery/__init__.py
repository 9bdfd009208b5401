"""vaultquery — restricted read-only query engine for table and graph datasets."""

__version__ = "0.1.0"
