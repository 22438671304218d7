"""
Shared Schema Base
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case fields, camelCase on the wire (the website's naming)"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
