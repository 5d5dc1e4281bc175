"""
Fetch-and-extract pipeline for quote listing pages.

A page is fetched (request manager), parsed into a read-only tree
(LxmlPageElement), turned into Records (extractor) and written to CSV
(exporter). The drivers wire these steps together.
"""

__version__ = "0.1.0"
