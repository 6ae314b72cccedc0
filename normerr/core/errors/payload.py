from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict


class ErrorPayload(BaseModel):
    """Typed view of ``NormalizedError.to_json()``.

    Metadata keys are carried as extra fields. A mapping of sub-errors may
    hold a plain-string truncation note next to the nested payloads.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    message: str
    stack: Optional[str] = None
    cause: Optional["ErrorPayload"] = None
    errors: Optional[Union[List["ErrorPayload"], Dict[str, Union["ErrorPayload", str]]]] = None


ErrorPayload.model_rebuild()
