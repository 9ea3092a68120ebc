"""
Web crawling: page fetching and the index-building crawler.
"""

from .fetcher import WebFetcher, FetchResult
from .web_crawler import WebCrawler, CrawlStats, VisitedSet, crawl

__all__ = [
    'WebFetcher', 'FetchResult',
    'WebCrawler', 'CrawlStats', 'VisitedSet', 'crawl'
]
