"""
Mapping forme normalisée <-> ligne de stockage.

Une table de schéma explicite par entité, un seul mapper générique.
Les codecs encodent à l'écriture et décodent à la lecture:
- FLAG: bool <-> 0/1
- JSON_LIST / JSON_SET / JSON_OBJECT: tableaux et objets stockés en texte JSON
- PHOTO: triple {url, small, normal} <-> trois colonnes photo_*

Rien en dehors du store ne voit le texte encodé.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

from ollacart.schemas import (
    AffiliateLink,
    CartItem,
    Product,
    Retailer,
    RetailerAnalytics,
    StripePayment,
)


# =============================================================================
# CODECS
# =============================================================================

class Codec:
    """Codec identité sur une colonne."""

    multi_column = False

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, value: Any) -> Any:
        return value


class FlagCodec(Codec):
    def encode(self, value: Any) -> Any:
        if value is None:
            return None
        return 1 if value else 0

    def decode(self, value: Any) -> Any:
        if value is None:
            return False
        return int(value) > 0


class JSONListCodec(Codec):
    def encode(self, value: Any) -> Any:
        return json.dumps(_plain(list(value or [])))

    def decode(self, value: Any) -> Any:
        return json.loads(value) if value else []


class JSONSetCodec(Codec):
    def encode(self, value: Any) -> Any:
        # Trié pour un texte stable
        return json.dumps(sorted(value or []))

    def decode(self, value: Any) -> Any:
        return set(json.loads(value)) if value else set()


class JSONObjectCodec(Codec):
    def encode(self, value: Any) -> Any:
        return json.dumps(_plain(value or {}), sort_keys=True)

    def decode(self, value: Any) -> Any:
        return json.loads(value) if value else {}


class PhotoCodec(Codec):
    """Photo principale aplatie en (url, small, normal)."""

    multi_column = True

    def encode(self, value: Any) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        if value is None:
            return (None, None, None)
        photo = _plain(value)
        return (photo.get("url"), photo.get("small"), photo.get("normal"))

    def decode(self, value: Tuple[Any, ...]) -> Any:
        url, small, normal = value
        if not url:
            return None
        return {"url": url, "small": small or None, "normal": normal or None}


def _plain(value: Any) -> Any:
    """Convertit récursivement les modèles pydantic en dicts sérialisables."""
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_plain(v) for v in value]
    return value


PLAIN = Codec()
FLAG = FlagCodec()
JSON_LIST = JSONListCodec()
JSON_SET = JSONSetCodec()
JSON_OBJECT = JSONObjectCodec()
PHOTO = PhotoCodec()


# =============================================================================
# SCHÉMAS
# =============================================================================

@dataclass(frozen=True)
class Field:
    name: str
    columns: Tuple[str, ...]
    codec: Codec = PLAIN

    @property
    def filterable(self) -> bool:
        return not self.codec.multi_column and type(self.codec) in (Codec, FlagCodec)


def f(name: str, column: Optional[str] = None, codec: Codec = PLAIN) -> Field:
    return Field(name=name, columns=(column or name,), codec=codec)


@dataclass(frozen=True)
class EntitySchema:
    collection: str
    model: Type[BaseModel]
    fields: Tuple[Field, ...]
    # Clés d'unicité (noms de colonnes), respectées par tous les backends
    unique: Tuple[Tuple[str, ...], ...] = ()

    def field(self, name: str) -> Field:
        for fld in self.fields:
            if fld.name == name:
                return fld
        raise KeyError(f"{self.collection}: unknown field {name!r}")

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(col for fld in self.fields for col in fld.columns)


PRODUCT_SCHEMA = EntitySchema(
    collection="products",
    model=Product,
    fields=(
        f("id"),
        f("user_id"),
        f("name"),
        f("description"),
        f("keywords", codec=JSON_LIST),
        f("color"),
        f("size"),
        f("price"),
        f("url"),
        f("original_url"),
        f("domain"),
        Field("photo", ("photo_url", "photo_small", "photo_normal"), PHOTO),
        f("photos", codec=JSON_LIST),
        f("shared", codec=FLAG),
        f("purchased", codec=FLAG),
        f("purchased_status"),
        f("likes", codec=JSON_SET),
        f("dislikes", codec=JSON_SET),
        f("fork_id"),
        f("forked_ids", codec=JSON_LIST),
        f("ce_id"),
        f("category_id"),
        f("sequence"),
        f("created_at"),
        f("updated_at"),
    ),
)

CART_ITEM_SCHEMA = EntitySchema(
    collection="cart_items",
    model=CartItem,
    fields=(
        f("id"),
        f("user_id"),
        f("product_id"),
        f("cart_type"),
        f("quantity"),
        f("affiliate_link_id"),
        f("created_at"),
        f("updated_at"),
    ),
    unique=(("user_id", "product_id", "cart_type"),),
)

AFFILIATE_LINK_SCHEMA = EntitySchema(
    collection="affiliate_links",
    model=AffiliateLink,
    fields=(
        f("id"),
        f("product_id"),
        f("retailer_id"),
        f("user_id"),
        f("affiliate_code"),
        f("affiliate_url"),
        f("commission_rate"),
        f("clicks"),
        f("conversions"),
        f("revenue"),
        f("is_active", codec=FLAG),
        f("created_at"),
        f("updated_at"),
    ),
    unique=(("affiliate_code",),),
)

RETAILER_SCHEMA = EntitySchema(
    collection="retailers",
    model=Retailer,
    fields=(
        f("id"),
        f("user_id"),
        f("name"),
        f("email"),
        f("domain"),
        f("stripe_account_id"),
        f("stripe_onboarding_complete", codec=FLAG),
        f("commission_rate"),
        f("is_active", codec=FLAG),
        f("created_at"),
        f("updated_at"),
    ),
)

PAYMENT_SCHEMA = EntitySchema(
    collection="stripe_payments",
    model=StripePayment,
    fields=(
        f("id"),
        f("stripe_payment_intent_id"),
        f("user_id"),
        f("retailer_id"),
        f("amount"),
        f("currency"),
        f("status"),
        f("affiliate_commission"),
        f("cart_items", codec=JSON_LIST),
        f("line_totals", codec=JSON_OBJECT),
        f("affiliate_link_ids", codec=JSON_OBJECT),
        f("created_at"),
        f("updated_at"),
    ),
)

ANALYTICS_SCHEMA = EntitySchema(
    collection="retailer_analytics",
    model=RetailerAnalytics,
    fields=(
        f("id"),
        f("retailer_id"),
        f("date"),
        f("product_views"),
        f("cart_adds"),
        f("purchases"),
        f("revenue"),
        f("created_at"),
    ),
    unique=(("retailer_id", "date"),),
)

SCHEMAS = (
    PRODUCT_SCHEMA,
    CART_ITEM_SCHEMA,
    AFFILIATE_LINK_SCHEMA,
    RETAILER_SCHEMA,
    PAYMENT_SCHEMA,
    ANALYTICS_SCHEMA,
)


# =============================================================================
# MAPPER GÉNÉRIQUE
# =============================================================================

def to_row(schema: EntitySchema, fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Encode un dict de champs normalisés en ligne de stockage.

    Seuls les champs présents sont encodés (mise à jour partielle);
    les clés hors schéma sont ignorées.
    """
    row: Dict[str, Any] = {}
    for fld in schema.fields:
        if fld.name not in fields:
            continue
        encoded = fld.codec.encode(fields[fld.name])
        if fld.codec.multi_column:
            row.update(zip(fld.columns, encoded))
        else:
            row[fld.columns[0]] = encoded
    return row


def from_row(schema: EntitySchema, row: Mapping[str, Any]) -> Dict[str, Any]:
    """Décode une ligne de stockage en dict de champs normalisés."""
    fields: Dict[str, Any] = {}
    for fld in schema.fields:
        if fld.codec.multi_column:
            fields[fld.name] = fld.codec.decode(tuple(row.get(col) for col in fld.columns))
        else:
            fields[fld.name] = fld.codec.decode(row.get(fld.columns[0]))
    return fields


def to_entity(schema: EntitySchema, row: Mapping[str, Any]) -> BaseModel:
    return schema.model.model_validate(from_row(schema, row))


def column_for(schema: EntitySchema, name: str) -> str:
    """Colonne d'un champ filtrable/triable (scalaire, mono-colonne)."""
    fld = schema.field(name)
    if not fld.filterable:
        raise ValueError(f"{schema.collection}: field {name!r} cannot be filtered or sorted")
    return fld.columns[0]


def encode_where(schema: EntitySchema, where: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Traduit une clause where normalisée en clause sur les colonnes.

    Formes acceptées: {champ: valeur}, {champ: {"in": [...]}},
    {champ: {"gte": v}}, {champ: {"lte": v}}.
    """
    encoded: Dict[str, Any] = {}
    for name, condition in (where or {}).items():
        fld = schema.field(name)
        column = column_for(schema, name)
        if isinstance(condition, dict):
            ops = {}
            for op, value in condition.items():
                if op not in ("in", "gte", "lte"):
                    raise ValueError(f"Unsupported where operator {op!r}")
                if op == "in":
                    ops[op] = [fld.codec.encode(v) for v in value]
                else:
                    ops[op] = fld.codec.encode(value)
            encoded[column] = ops
        else:
            encoded[column] = fld.codec.encode(condition)
    return encoded


def encode_order(schema: EntitySchema, order_by: Optional[Iterable[Tuple[str, str]]]) -> Tuple[Tuple[str, bool], ...]:
    """[(champ, "asc"|"desc")] -> ((colonne, descending), ...)"""
    result = []
    for name, direction in order_by or ():
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unsupported order direction {direction!r}")
        result.append((column_for(schema, name), direction == "desc"))
    return tuple(result)
