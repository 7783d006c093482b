# catalog_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Catalog Service (dev mock)")


RESTAURANTS = {
    "r1": {
        "id": "r1",
        "name": "Bella Napoli",
        "image": "/images/bella-napoli.jpg",
        "cuisine": "Italian",
        "rating": 4.7,
        "review_count": 312,
        "delivery_time": "25-35 min",
        "delivery_fee": 2.99,
        "min_order": 15,
        "featured": True,
        "menu": [
            {"id": "r1-m1", "name": "Margherita", "description": "Tomato, mozzarella, basil",
             "price": 12.50, "image": "/images/margherita.jpg", "category": "Pizza", "popular": True},
            {"id": "r1-m2", "name": "Diavola", "description": "Spicy salami, chili oil",
             "price": 14.00, "image": "/images/diavola.jpg", "category": "Pizza"},
            {"id": "r1-m3", "name": "Tiramisu", "description": "Mascarpone, espresso",
             "price": 6.50, "image": "/images/tiramisu.jpg", "category": "Dessert"},
        ],
    },
    "r2": {
        "id": "r2",
        "name": "Tokyo Ramen Bar",
        "image": "/images/tokyo-ramen.jpg",
        "cuisine": "Japanese",
        "rating": 4.5,
        "review_count": 198,
        "delivery_time": "30-40 min",
        "delivery_fee": 3.49,
        "min_order": 12,
        "menu": [
            {"id": "r2-m1", "name": "Tonkotsu Ramen", "description": "Pork broth, chashu, egg",
             "price": 15.00, "image": "/images/tonkotsu.jpg", "category": "Ramen", "popular": True},
            {"id": "r2-m2", "name": "Gyoza", "description": "Pan-fried dumplings (6)",
             "price": 7.00, "image": "/images/gyoza.jpg", "category": "Sides"},
        ],
    },
    "r3": {
        "id": "r3",
        "name": "Green Bowl",
        "image": "/images/green-bowl.jpg",
        "cuisine": "Healthy",
        "rating": 4.3,
        "review_count": 87,
        "delivery_time": "20-30 min",
        "delivery_fee": 1.99,
        "min_order": 10,
        "menu": [
            {"id": "r3-m1", "name": "Quinoa Bowl", "description": "Quinoa, avocado, greens",
             "price": 11.00, "image": "/images/quinoa.jpg", "category": "Bowls"},
        ],
    },
}


@app.get("/restaurants")
def list_restaurants(cuisine: str | None = None, search: str | None = None):
    result = list(RESTAURANTS.values())
    if cuisine:
        result = [r for r in result if r["cuisine"].lower() == cuisine.lower()]
    if search:
        needle = search.lower()
        result = [
            r for r in result
            if needle in r["name"].lower()
            or any(needle in m["name"].lower() for m in r["menu"])
        ]
    return result


@app.get("/restaurants/{restaurant_id}")
def get_restaurant(restaurant_id: str):
    restaurant = RESTAURANTS.get(restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant
