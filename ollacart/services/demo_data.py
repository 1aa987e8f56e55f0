"""
Données de démo servies en mode dégradé (store injoignable).

Jeu fixe, clairement étiqueté: ids "demo_*", propriétaire DEMO_USER_ID.
"""
from typing import List

from ollacart.schemas import CartItem, Photo, Product
from ollacart.utils.ids import now_ms, utcnow

DEMO_USER_ID = "demo_user"

_DEMO_PRODUCTS = [
    {
        "id": "demo_1",
        "name": "Wireless Bluetooth Headphones",
        "description": "High-quality wireless headphones with noise cancellation",
        "keywords": ["headphones", "wireless", "bluetooth", "audio"],
        "price": 89.99,
        "color": "Black",
        "size": "One Size",
        "image": "photo-1505740420928-5e560c06d30e",
        "url": "https://amazon.com/demo-headphones",
        "domain": "amazon.com",
        "category_id": "electronics",
    },
    {
        "id": "demo_2",
        "name": "Smart Fitness Watch",
        "description": "Track your fitness goals with this advanced smartwatch",
        "keywords": ["watch", "fitness", "smart", "health"],
        "price": 199.99,
        "color": "Silver",
        "size": "42mm",
        "image": "photo-1523275335684-37898b6baf30",
        "url": "https://bestbuy.com/demo-watch",
        "domain": "bestbuy.com",
        "category_id": "electronics",
    },
    {
        "id": "demo_3",
        "name": "Organic Cotton T-Shirt",
        "description": "Comfortable and sustainable organic cotton t-shirt",
        "keywords": ["shirt", "organic", "cotton", "clothing"],
        "price": 29.99,
        "color": "Navy Blue",
        "size": "M",
        "image": "photo-1521572163474-6864f9cf17ab",
        "url": "https://example-store.com/demo-shirt",
        "domain": "example-store.com",
        "category_id": "clothing",
    },
]

_UNSPLASH = "https://images.unsplash.com/{image}?w={w}&h={w}&fit=crop"


def demo_products() -> List[Product]:
    now = utcnow()
    base_sequence = now_ms()
    products = []
    for index, data in enumerate(_DEMO_PRODUCTS):
        products.append(Product(
            id=data["id"],
            user_id=DEMO_USER_ID,
            name=data["name"],
            description=data["description"],
            keywords=list(data["keywords"]),
            price=data["price"],
            color=data["color"],
            size=data["size"],
            photo=Photo(
                url=_UNSPLASH.format(image=data["image"], w=400),
                small=_UNSPLASH.format(image=data["image"], w=200),
                normal=_UNSPLASH.format(image=data["image"], w=400),
            ),
            url=data["url"],
            original_url=data["url"],
            domain=data["domain"],
            category_id=data["category_id"],
            sequence=base_sequence - index * 1000,
            created_at=now,
            updated_at=now,
        ))
    return products


def demo_cart_items(cart_type: str = "shopping") -> List[CartItem]:
    now = utcnow()
    return [
        CartItem(
            id="cart_demo_1",
            user_id=DEMO_USER_ID,
            product_id="demo_1",
            cart_type=cart_type,
            quantity=1,
            created_at=now,
            updated_at=now,
        ),
        CartItem(
            id="cart_demo_2",
            user_id=DEMO_USER_ID,
            product_id="demo_2",
            cart_type=cart_type,
            quantity=2,
            created_at=now,
            updated_at=now,
        ),
    ]
