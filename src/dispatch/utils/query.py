"""Paging helpers over Protean querysets."""

from dataclasses import dataclass, field

PAGE_SIZE = 500


@dataclass
class Page:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20

    @property
    def pages(self) -> int:
        return (self.total + self.per_page - 1) // self.per_page if self.per_page else 0

    def to_dict(self, serialize=None) -> dict:
        serialize = serialize or (lambda item: item.to_dict())
        return {
            "items": [serialize(item) for item in self.items],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
            "pages": self.pages,
        }


def paginate(queryset, page: int = 1, per_page: int = 20) -> Page:
    """One page of a queryset; pages are 1-based."""
    page = max(1, page)
    per_page = max(1, per_page)
    result = queryset.offset((page - 1) * per_page).limit(per_page).all()
    return Page(items=list(result.items), total=result.total, page=page, per_page=per_page)


def iter_all(queryset, page_size: int = PAGE_SIZE):
    """Yield every record of a queryset, fetching in fixed-size pages."""
    offset = 0
    while True:
        result = queryset.offset(offset).limit(page_size).all()
        yield from result.items
        if len(result.items) < page_size:
            return
        offset += page_size
