from typing import Optional, Tuple


def parse_page(limit: Optional[str], offset: Optional[str], default_limit: int, max_limit: int) -> Tuple[int, int]:
    """Parse paging params; anything invalid falls back to the default."""
    page_limit = default_limit
    page_offset = 0
    try:
        parsed = int(limit) if limit is not None else page_limit
        if 1 <= parsed <= max_limit:
            page_limit = parsed
    except ValueError:
        pass
    try:
        parsed = int(offset) if offset is not None else 0
        if parsed >= 0:
            page_offset = parsed
    except ValueError:
        pass
    return page_limit, page_offset
