"""Wire-level building blocks and a metadata client for HDFS."""

__version__ = "0.1.0"