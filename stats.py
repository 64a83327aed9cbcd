from pymongo.database import Database

from database import CLOTHES, PAYMENTS, USERS


def admin_statistics(db: Database) -> dict:
    users = db[USERS].count_documents({})
    products = db[CLOTHES].count_documents({})
    orders = db[PAYMENTS].count_documents({})

    totals = list(db[PAYMENTS].aggregate([
        {"$group": {"_id": None, "totalRevenue": {"$sum": "$price"}}},
    ]))
    revenue = totals[0]["totalRevenue"] if totals else 0

    return {"users": users, "products": products, "orders": orders, "revenue": revenue}


def order_statistics(db: Database) -> list:
    # each productsId entry is a category reference matched against clothes.category
    pipeline = [
        {"$unwind": "$productsId"},
        {"$lookup": {
            "from": CLOTHES,
            "localField": "productsId",
            "foreignField": "category",
            "as": "items",
        }},
        {"$unwind": "$items"},
        {"$group": {
            "_id": "$items.category",
            "quantity": {"$sum": 1},
            "revenue": {"$sum": "$items.new_price"},
        }},
        {"$sort": {"_id": 1}},
    ]
    return [
        {"category": row["_id"], "quantity": row["quantity"], "revenue": row["revenue"]}
        for row in db[PAYMENTS].aggregate(pipeline)
    ]
