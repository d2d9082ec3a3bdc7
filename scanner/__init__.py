"""AI visibility scanner - crawl, parse and score a single page."""

# Lazy imports to avoid requiring all dependencies at import time
# Use explicit imports when needed:
# from scanner.tasks.scan import run_scan, ScanReport
# from scanner.crawler.sources import DataSources
