from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Backend records travel camelCase; Python code uses snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
