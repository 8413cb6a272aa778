"""Demo data for a fresh storefront database.

Usage:
    python seed.py            # seed only when the catalog is empty
    python seed.py --reset    # wipe users, categories, products and config first
"""

import argparse

from pymongo.database import Database

from auth import hash_password
from database import create_document, ensure_indexes, to_object_id
from logging_setup import configure_logging, get_logger
from schemas import Category, Config, Product, User
from site_config import SITE_KEY

logger = get_logger(__name__)

DEMO_USERS = [
    {"name": "Admin", "email": "admin@elangoproducts.com", "password": "admin123", "role": "admin"},
    {"name": "Test User", "email": "user@test.com", "password": "user123", "role": "user"},
]

DEMO_CATEGORIES = [
    {"name": "Masala Items", "description": "Traditional spice blends and masalas"},
    {"name": "Milk Products", "description": "Fresh dairy products and milk-based items"},
    {"name": "Grocery Items", "description": "Essential grocery items and staples"},
]

DEMO_PRODUCTS = [
    {
        "name": "Sambhar Masala",
        "description": "Authentic South Indian sambhar masala powder made with traditional spices",
        "price": 120,
        "image": "/images/sambhar-masala.jpg",
        "category": "Masala Items",
        "stock": 50,
    },
    {
        "name": "Rasam Powder",
        "description": "Tangy and flavorful rasam powder for the perfect South Indian rasam",
        "price": 100,
        "image": "/images/rasam-powder.jpg",
        "category": "Masala Items",
        "stock": 40,
    },
    {
        "name": "Turmeric Powder",
        "description": "Pure and organic turmeric powder with natural color and aroma",
        "price": 80,
        "image": "/images/turmeric-powder.jpg",
        "category": "Masala Items",
        "stock": 60,
    },
    {
        "name": "Pure Ghee",
        "description": "Traditional homemade ghee from pure cow milk",
        "price": 500,
        "image": "/images/ghee.jpg",
        "category": "Milk Products",
        "stock": 25,
    },
    {
        "name": "Fresh Paneer",
        "description": "Soft and fresh paneer made from pure milk",
        "price": 200,
        "image": "/images/paneer.jpg",
        "category": "Milk Products",
        "stock": 15,
    },
    {
        "name": "Khoya",
        "description": "Rich and creamy khoya perfect for sweets and desserts",
        "price": 300,
        "image": "/images/khoya.jpg",
        "category": "Milk Products",
        "stock": 20,
    },
    {
        "name": "Basmati Rice",
        "description": "Premium quality basmati rice with long grains and aromatic fragrance",
        "price": 150,
        "image": "/images/basmati-rice.jpg",
        "category": "Grocery Items",
        "stock": 100,
    },
    {
        "name": "Toor Dal",
        "description": "High-quality toor dal (pigeon peas) rich in protein",
        "price": 120,
        "image": "/images/toor-dal.jpg",
        "category": "Grocery Items",
        "stock": 80,
    },
    {
        "name": "Urad Dal",
        "description": "Premium urad dal perfect for making dosa, idli, and vada",
        "price": 130,
        "image": "/images/urad-dal.jpg",
        "category": "Grocery Items",
        "stock": 70,
    },
]


def seed_database(db: Database, reset: bool = False) -> dict:
    if reset:
        for name in ("user", "category", "product", "config"):
            db[name].delete_many({})
    elif db["product"].count_documents({}) > 0:
        return {"seeded": False, "message": "Products already exist"}

    ensure_indexes(db)

    for u in DEMO_USERS:
        if db["user"].find_one({"email": u["email"]}):
            continue
        user = User(name=u["name"], email=u["email"], password_hash=hash_password(u["password"]), role=u["role"])
        create_document(db, "user", user)

    category_ids = {}
    for c in DEMO_CATEGORIES:
        existing = db["category"].find_one({"name_key": c["name"].lower()})
        if existing:
            category_ids[c["name"]] = existing["_id"]
            continue
        category = Category(name=c["name"], name_key=c["name"].lower(), description=c["description"])
        category_ids[c["name"]] = to_object_id(create_document(db, "category", category))

    for p in DEMO_PRODUCTS:
        fields = {k: v for k, v in p.items() if k != "category"}
        product = Product(**fields, category_id=str(category_ids[p["category"]]))
        doc = product.model_dump()
        doc["category_id"] = category_ids[p["category"]]
        create_document(db, "product", doc)

    if not db["config"].find_one({"key": SITE_KEY}):
        create_document(db, "config", Config(key=SITE_KEY))

    summary = {
        "seeded": True,
        "users": db["user"].count_documents({}),
        "categories": db["category"].count_documents({}),
        "products": db["product"].count_documents({}),
    }
    logger.info("database_seeded", **summary)
    return summary


def main():
    parser = argparse.ArgumentParser(description="Seed the storefront database with demo data")
    parser.add_argument("--reset", action="store_true", help="Delete existing data before seeding")
    args = parser.parse_args()

    configure_logging()

    from database import db

    result = seed_database(db, reset=args.reset)
    print(result)
    if result["seeded"]:
        print("Login credentials:")
        for u in DEMO_USERS:
            print(f"  {u['role'].title()}: {u['email']} / {u['password']}")


if __name__ == "__main__":
    main()
