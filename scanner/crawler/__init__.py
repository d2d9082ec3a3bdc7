"""Crawler package: page fetch and auxiliary data sources."""

# Lazy imports to avoid requiring all dependencies at import time
# Use explicit imports when needed:
# from scanner.crawler.fetcher import PageFetcher, CrawlResult, crawl_page
# from scanner.crawler.url import validate_url, normalize_url, get_origin
# from scanner.crawler.robots import RobotsParser, fetch_robots
# from scanner.crawler.sitemap import parse_sitemap, fetch_sitemap
# from scanner.crawler.wayback import fetch_wayback
# from scanner.crawler.crux import fetch_crux
# from scanner.crawler.geocoding import Geocoder, MinIntervalRateLimiter
# from scanner.crawler.sources import DataSources
