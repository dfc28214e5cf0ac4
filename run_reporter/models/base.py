"""Base model configuration for all data structures."""

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _either_case(name: str) -> AliasChoices:
    return AliasChoices(name, to_camel(name))


class Model(BaseModel):
    """Base model with standard configuration."""

    model_config = ConfigDict(frozen=True)


class ReportModel(Model):
    """Model written with camelCase keys, read from either case."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=AliasGenerator(
            validation_alias=_either_case, serialization_alias=to_camel
        ),
    )
