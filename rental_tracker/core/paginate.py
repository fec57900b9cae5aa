import math


class PaginatePage:
    def normalize(self, page: int, per_page: int, max_per_page: int = 100):
        page = max(page or 1, 1)
        per_page = min(max(per_page or 1, 1), max_per_page)
        return page, per_page

    def offset(self, page: int, per_page: int) -> int:
        return (page - 1) * per_page

    def total_pages(self, total: int, per_page: int) -> int:
        return math.ceil(total / per_page) if per_page else 0

    def page_dict(self, items: list, total: int, page: int, per_page: int) -> dict:
        return {
            "items": items,
            "total": total,
            "page": page,
            "per_page": per_page,
            "total_pages": self.total_pages(total, per_page),
        }
