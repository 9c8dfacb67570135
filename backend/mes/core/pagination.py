from mes.core.config import settings


def clamp_page(page: int | None, page_size: int | None) -> tuple[int, int]:
    """Normalize paging input: page >= 1, page_size within [1, MAX_PAGE_SIZE]."""
    if not page or page < 1:
        page = 1
    if not page_size or page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
        page_size = settings.DEFAULT_PAGE_SIZE
    return page, page_size
