"""Paging parameter normalization shared by every listing."""

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MAX_PAGE = 10000


def normalize_page_params(page: int | None, page_size: int | None) -> tuple[int, int]:
    """
    Clamp paging input: missing or < 1 falls back to the defaults,
    oversized values are capped at MAX_PAGE / MAX_PAGE_SIZE.
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if page > MAX_PAGE:
        page = MAX_PAGE
    if page_size is None or page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    if page_size > MAX_PAGE_SIZE:
        page_size = MAX_PAGE_SIZE
    return page, page_size


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return (total + page_size - 1) // page_size
