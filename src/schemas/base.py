"""Shared pydantic base for API schemas."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model whose JSON keys are camelCase (e.g. `isArchived`, `createdAt`).

    Request bodies accept either camelCase or snake_case keys; responses are
    serialized by alias, so clients always see camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
