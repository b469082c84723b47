from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Campos em snake_case no Python, camelCase no JSON da API"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
