"""
Shared base for models persisted as store documents.
"""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T", bound="DocumentModel")


class DocumentModel(BaseModel):
    """Base model with camelCase document keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible document with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})

    @classmethod
    def from_document(cls: Type[T], data: Dict[str, Any], key: Optional[str] = None) -> T:
        """Build a model from a stored document, injecting its key as ``id``."""
        payload = dict(data)
        if key is not None and "id" in cls.model_fields:
            payload["id"] = key
        return cls.model_validate(payload)
