"""Base Pydantic model configuration for oidcore models.

All oidcore records inherit from OIDCoreBaseModel so they behave the same way:
- Immutability (frozen=True); clients, grants and issued tokens never change
  once built, which is what lets them cross task boundaries without copies
- Strict validation (extra="forbid") to catch typos in configuration
- Flexible field naming (populate_by_name=True) for wire aliases such as id_token
"""

from pydantic import BaseModel, ConfigDict


class OIDCoreBaseModel(BaseModel):
    """Base model for all oidcore entities.

    Example:
        >>> class Thing(OIDCoreBaseModel):
        ...     name: str
        >>> Thing(name="api1").name
        'api1'
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
        json_schema_extra={
            "additionalProperties": False,
        },
    )
