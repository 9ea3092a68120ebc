#!/usr/bin/env python3
"""
Main entry point for building, exporting and searching inverted indexes.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from webindex import __version__
from webindex.concurrency import WorkQueue
from webindex.crawler import WebCrawler, WebFetcher
from webindex.index import InvertedIndex, IndexBuilder
from webindex.search import QueryEngine
from webindex.storage import StorageError, write_index, write_results
from webindex.utils.config import Config, load_config, validate_config
from webindex.utils.logger import setup_logging, log_system_info
from webindex.utils.monitoring import IndexMonitor


DEFAULT_THREADS = 5
DEFAULT_LIMIT = 50


class IndexApp:
    """Main application class: crawl and/or index, export, query."""

    def __init__(self, config: Config, enable_json_logs: bool = False):
        self.config = config
        self.enable_json_logs = enable_json_logs
        self.logger = logging.getLogger(__name__)
        self.monitor = IndexMonitor()
        self.index = InvertedIndex()
        self._work_queue: Optional[WorkQueue] = None

    def setup_logging(self):
        """Setup logging configuration."""
        setup_logging(self.config.logging, enable_json=self.enable_json_logs)
        if self.config.monitoring.metrics_enabled:
            self.monitor.metrics.start_server(self.config.monitoring.prometheus_port)

    @property
    def work_queue(self) -> WorkQueue:
        """Shared worker pool, created on first use."""
        if self._work_queue is None:
            self._work_queue = WorkQueue(self.config.workers.threads, monitor=self.monitor)
        return self._work_queue

    def run(self, args: argparse.Namespace) -> int:
        """Run every step requested on the command line."""
        threaded = args.threads is not None

        try:
            self.logger.info("=== WEB INDEX STARTING ===")
            self.logger.info(f"Worker threads: {self.config.workers.threads if threaded else 1}")

            if args.url:
                self.crawl(args.url)

            if args.path:
                path = Path(args.path)
                if not path.exists():
                    self.logger.error(f"Input path not found: {path}")
                    return 1
                IndexBuilder(index=self.index, monitor=self.monitor).build(
                    path, self.work_queue if threaded else None
                )

            if args.index:
                write_index(self.index, args.index)

            engine = QueryEngine(monitor=self.monitor)
            if args.query:
                query_path = Path(args.query)
                if not query_path.is_file():
                    self.logger.error(f"Query file not found: {query_path}")
                    return 1
                engine.parse_file(query_path)
                engine.run(self.index, exact=args.exact,
                           work_queue=self.work_queue if threaded else None)

            if args.results:
                write_results(engine, args.results)

        except StorageError as e:
            self.logger.error(f"Export failed: {e}")
            return 1

        except ValueError as e:
            self.logger.error(f"Invalid input: {e}")
            return 1

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            if self._work_queue is not None:
                self._work_queue.shutdown()
            self.logger.info(f"Metrics: {self.monitor.get_summary()}")
            self.logger.info("=== WEB INDEX FINISHED ===")

        return 0

    def crawl(self, seed_url: str):
        """Crawl from the seed URL into the application's index."""
        with WebFetcher.from_config(self.config.crawler,
                                    max_concurrent_requests=self.config.workers.threads) as fetcher:
            crawler = WebCrawler(
                fetcher,
                limit=self.config.crawler.limit,
                index=self.index,
                monitor=self.monitor
            )
            try:
                crawler.crawl(seed_url, self.work_queue)
            except BaseException:
                # Stop taking crawl tasks while the fetcher is still open;
                # closing it then cancels whatever is mid-fetch
                self.work_queue.shutdown(wait=False)
                raise


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Multithreaded inverted index builder, web crawler and search engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --path input/ --index                       # Index a directory, write index.json
  python main.py --path input/ --threads 8 --query q.txt --results
  python main.py --url https://example.com/ --limit 20 --index crawl.json
  python main.py --path input/ --query q.txt --exact --results out.json
        """
    )

    parser.add_argument('--path', help='HTML file or directory to index')
    parser.add_argument('--url', help='Seed URL to crawl')
    parser.add_argument('--limit', type=int, help='Maximum number of pages to crawl')
    parser.add_argument(
        '--threads', type=int, nargs='?', const=DEFAULT_THREADS,
        help=f'Use worker threads (default {DEFAULT_THREADS} when no count is given)'
    )
    parser.add_argument(
        '--index', nargs='?', const='',
        help='Write the inverted index to this file (default: index.json)'
    )
    parser.add_argument('--query', help='File of search queries, one per line')
    parser.add_argument('--exact', action='store_true', help='Use exact instead of partial search')
    parser.add_argument(
        '--results', nargs='?', const='',
        help='Write query results to this file (default: results.json)'
    )
    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('--json-logs', action='store_true', help='Emit structured JSON logs')
    parser.add_argument('--version', action='version', version=f'Web Index {__version__}')

    return parser


def apply_arguments(config: Config, args: argparse.Namespace) -> Config:
    """Override configuration values with command line arguments."""
    if args.threads is not None:
        config.workers.threads = args.threads if args.threads > 0 else DEFAULT_THREADS
    if args.limit is not None:
        config.crawler.limit = args.limit if args.limit > 0 else DEFAULT_LIMIT
    if args.url:
        config.crawler.seed_url = args.url
    else:
        args.url = config.crawler.seed_url
    if args.path:
        config.index.path = args.path
    else:
        args.path = config.index.path
    # Flags given without a file name use the configured output files
    if args.index == '':
        args.index = config.index.output
    if args.results == '':
        args.results = config.index.results

    validate_config(config)
    return config


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = apply_arguments(load_config(args.config), args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    app = IndexApp(config, enable_json_logs=args.json_logs)
    app.setup_logging()
    log_system_info(config.workers.threads)

    try:
        return app.run(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
