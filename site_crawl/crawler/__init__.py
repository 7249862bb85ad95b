"""Crawl orchestration: scope, canonical URLs, robots.txt, fetch policy and ranking."""
