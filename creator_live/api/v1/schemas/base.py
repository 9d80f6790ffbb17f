from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from creator_live.shared.api.utils import ApiSuccess

T = TypeVar("T")


class ApiOut(ApiSuccess, Generic[T]):
    """Standard API envelope used by public routers."""

    data: T  # type: ignore[valid-type]


class AliasedOut(BaseModel):
    """Built by field name, rendered with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)
