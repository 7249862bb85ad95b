"""HTML parsing helpers for site_crawl."""
