"""
Shared pydantic base for stored documents and request bodies.

Documents are stored and returned with camelCase keys; Python code works
with snake_case attributes.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_document(cls, doc: dict):
        return cls.model_validate(doc)

    def to_document(self, **kwargs) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)
