"""
Order reconciliation and payment settlement.

Orders are merged per (product_id, email): the first request inserts, every
later one bumps the quantity by one. Settling a payment records it and clears
the orders it covers.
"""

import logging

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import ORDERS, PAYMENTS, delete_result, insert_result, parse_object_id, update_result

logger = logging.getLogger(__name__)


def place_order(db: Database, item: dict) -> dict:
    orders = db[ORDERS]
    key = {"product_id": item["product_id"], "email": item["email"]}

    res = orders.update_one(key, {"$inc": {"quantity": 1}})
    if res.matched_count:
        logger.info("Merged order for product %s by %s", key["product_id"], key["email"])
        return update_result(res)

    # filter fields are seeded into the upserted document by the query itself
    doc = {k: v for k, v in item.items() if k not in key}
    doc.setdefault("quantity", 1)
    try:
        res = orders.update_one(key, {"$setOnInsert": doc}, upsert=True)
    except DuplicateKeyError:
        res = None
    if res is None or res.upserted_id is None:
        # a concurrent request inserted the same key first
        res = orders.update_one(key, {"$inc": {"quantity": 1}})
        logger.info("Merged order for product %s by %s after insert race", key["product_id"], key["email"])
        return update_result(res)

    logger.info("Inserted order %s for product %s by %s", res.upserted_id, key["product_id"], key["email"])
    return {"acknowledged": res.acknowledged, "insertedId": str(res.upserted_id)}


def settle_payment(db: Database, payment: dict) -> dict:
    """Record a payment and delete the orders listed in its orderProducts.

    Ids are validated before anything is written. If clearing the orders fails
    the payment record is removed again and the store error is re-raised.
    """
    order_ids = [parse_object_id(oid) for oid in payment.get("orderProducts", [])]

    insert_res = db[PAYMENTS].insert_one(dict(payment))
    try:
        delete_res = db[ORDERS].delete_many({"_id": {"$in": order_ids}})
    except PyMongoError:
        logger.exception("Clearing orders failed, rolling back payment %s", insert_res.inserted_id)
        db[PAYMENTS].delete_one({"_id": insert_res.inserted_id})
        raise

    logger.info(
        "Settled payment %s for %s, cleared %d orders",
        insert_res.inserted_id, payment.get("email"), delete_res.deleted_count,
    )
    return {"insertResult": insert_result(insert_res), "deleteResult": delete_result(delete_res)}
