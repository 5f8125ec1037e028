"""
Base pydantic model for the camelCase wire format, plus shared bodies.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Accepts and emits camelCase keys while keeping snake_case attributes.

    Both `permissionIds` and `permission_ids` are accepted on input; FastAPI
    serializes response models by alias, so output is camelCase.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserIds(CamelModel):
    """Full membership set of a project or team."""
    user_ids: list[str] = Field(default_factory=list, description="Complete list of member user IDs")
