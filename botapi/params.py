"""Request parameter mapping sent as form fields."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from botapi.exceptions import EncodingError


def _to_jsonable(value: Any) -> Any:
    """Convert pydantic models (possibly nested in lists/dicts) to plain data."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


class Params(dict):
    """Field name → string value mapping for one API call.

    The ``add_*`` helpers skip zero / empty values so optional fields are
    only sent when the caller set them.
    """

    def add_non_empty(self, key: str, value: str | None) -> None:
        if value:
            self[key] = value

    def add_non_zero(self, key: str, value: int | None) -> None:
        if value:
            self[key] = str(value)

    def add_non_zero_float(self, key: str, value: float | None) -> None:
        if value:
            self[key] = repr(float(value))

    def add_bool(self, key: str, value: bool | None) -> None:
        if value:
            self[key] = "true"

    def add_first_valid(self, key: str, *values: int | str | None) -> None:
        """Set *key* to the first value that is neither zero nor empty."""
        for value in values:
            if value:
                self[key] = str(value)
                return

    def add_interface(self, key: str, value: Any) -> None:
        """JSON-encode *value* (models, lists, dicts) into *key*.

        Raises:
            EncodingError: If the value cannot be serialised.
        """
        if value is None:
            return
        try:
            self[key] = json.dumps(_to_jsonable(value), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"cannot encode field {key!r}: {exc}") from exc
