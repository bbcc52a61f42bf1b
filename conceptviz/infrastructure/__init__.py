"""Infrastructure layer: provider adapters, parsers, scraping, storage"""
