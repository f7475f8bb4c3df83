"""chbp - ClickHouse best-practices rule validation and compilation."""

__version__ = "0.1.0"
