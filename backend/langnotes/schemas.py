from typing import Annotated

from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

# Ids in request bodies and in URL paths; anything that is not a UUID is a 400
EntityId = Annotated[str, Field(pattern=UUID_PATTERN)]
PathId = Annotated[str, Path(pattern=UUID_PATTERN)]


class ApiModel(BaseModel):
	"""Base for request/response bodies: camelCase on the wire, snake_case in Python."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
