"""
Web Index

Builds and searches inverted indexes from HTML files or a bounded web crawl,
using a shared worker thread pool.
"""

__version__ = "1.0.0"
__description__ = "Multithreaded inverted index builder, web crawler and search engine"
