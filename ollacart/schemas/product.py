from datetime import datetime
from typing import List, Optional, Set

from pydantic import Field

from ollacart.schemas.common import CamelModel


class Photo(CamelModel):
    url: str
    small: Optional[str] = None
    normal: Optional[str] = None


class Product(CamelModel):
    id: str
    user_id: str

    name: str
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    color: Optional[str] = None
    size: Optional[str] = None

    price: float
    url: str
    original_url: Optional[str] = None
    domain: Optional[str] = None

    photo: Optional[Photo] = None
    photos: List[Photo] = Field(default_factory=list)

    shared: bool = False
    purchased: bool = False
    purchased_status: int = 0
    # Un user id est au plus dans un des deux ensembles
    likes: Set[str] = Field(default_factory=set)
    dislikes: Set[str] = Field(default_factory=set)

    fork_id: Optional[str] = None
    forked_ids: List[str] = Field(default_factory=list)

    ce_id: Optional[str] = None
    category_id: Optional[str] = None
    sequence: int

    created_at: datetime
    updated_at: datetime


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    url: str = Field(..., min_length=1)
    original_url: Optional[str] = None
    description: Optional[str] = None
    photo: Optional[str] = None  # URL, déclinée en {url, small, normal}
    photos: List[str] = Field(default_factory=list)
    color: Optional[str] = None
    size: Optional[str] = None
    ce_id: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)


class ProductUpdate(CamelModel):
    """Mise à jour partielle: seuls les champs présents sont appliqués."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    color: Optional[str] = None
    size: Optional[str] = None
    keywords: Optional[List[str]] = None
    purchased: Optional[bool] = None
    shared: Optional[bool] = None
    purchased_status: Optional[int] = None
    category_id: Optional[str] = None
    photo: Optional[Photo] = None
    photos: Optional[List[Photo]] = None


class ProductSearch(CamelModel):
    limit: int = Field(100, ge=1, le=500)
    skip: int = Field(0, ge=0)
    purchased: bool = False
    shared: bool = False
    social: bool = False
    # Propriétaire pour "shared", ensemble de propriétaires pour le feed social
    owner_id: Optional[str] = Field(None, alias="_id")
    owner_ids: Optional[List[str]] = Field(None, alias="_ids")
