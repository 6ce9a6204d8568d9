from typing import Any, TypedDict

from pydantic import BaseModel


class Pagination(BaseModel):
    total_records: int = 0
    per_page: int = 0
    page: int = 0
    last_page: int = 0
    next_page: int | None = None
    prev_page: int | None = None


class ListOptions(BaseModel):
    page: int = 0
    per_page: int = 0
    order: str = ""

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.page > 0:
            params["page"] = str(self.page)
        if self.per_page > 0:
            params["per_page"] = str(self.per_page)
        if self.order:
            params["order"] = self.order
        return params


RefreshStatus = TypedDict(
    "RefreshStatus",
    {
        "status": str,
        "in_progress": bool,
    },
)

ConnectLink = TypedDict(
    "ConnectLink",
    {
        "url": str,
        "expires_at": str,
    },
)

ResponseBody = dict[str, Any] | list[Any] | str | None
