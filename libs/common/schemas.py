"""Shared pydantic building blocks for service schemas.

The storefront speaks camelCase JSON; Python code uses snake_case attributes.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Rupiah amounts stay Decimal in Python and go out as JSON numbers.
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, snake_case names accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
