from pydantic import BaseModel, ConfigDict


class ORMBase(BaseModel):
    """Response schema built straight from a mapped row.

    Fields are filled from attributes and accept either the snake_case name
    or the lower-case wire name.
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
