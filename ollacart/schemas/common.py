from dataclasses import dataclass, field
from typing import Any, Generic, List, Type, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ollacart.core.exceptions import ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class CamelModel(BaseModel):
    """Forme normalisée: attributs snake_case, alias camelCase côté API."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


@dataclass
class Listing(Generic[T]):
    """
    Résultat d'une lecture de liste.

    degraded=True quand le store était injoignable et que les données
    de démo ont été servies à la place.
    """
    items: List[T] = field(default_factory=list)
    degraded: bool = False

    @property
    def size(self) -> int:
        return len(self.items)

    def to_api(self) -> dict:
        return {
            "data": [item.to_api() for item in self.items],
            "size": self.size,
            "degraded": self.degraded,
        }


def parse_payload(model: Type[M], data: Any) -> M:
    """Valide un payload (dict ou instance) et convertit l'erreur pydantic en ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"{loc or 'payload'}: {first.get('msg')}", field=loc or None)
