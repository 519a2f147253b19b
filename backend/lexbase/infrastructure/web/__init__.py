from .page_fetcher import HttpPageFetcher, extract_readable_text

__all__ = ["HttpPageFetcher", "extract_readable_text"]
