import logging
from typing import List, Optional

import stripe
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import payments
from auth import create_jwt, require_admin, require_auth
from config import get_settings
from database import (
    CLOTHES,
    ORDERS,
    PAYMENTS,
    USERS,
    connect,
    delete_result,
    ensure_indexes,
    get_db,
    insert_result,
    parse_object_id,
    serialize_doc,
    serialize_docs,
    update_result,
)
from orders import place_order, settle_payment
from schemas import (
    AdminStatistics,
    AdminStatus,
    CategoryStatistics,
    Order,
    Payment,
    PaymentIntentRequest,
    PaymentIntentResponse,
    Product,
    ProductUpdate,
    TokenRequest,
    TokenResponse,
    User,
)
from stats import admin_statistics, order_statistics

logger = logging.getLogger(__name__)

app = FastAPI(title="Lumina Store API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------- Error handlers -------------------------
@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": True, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(PyMongoError)
def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("Store operation failed on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": True, "message": "internal server error"})


@app.exception_handler(stripe.StripeError)
def gateway_error_handler(request: Request, exc: stripe.StripeError):
    logger.error("Payment gateway call failed on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=502, content={"error": True, "message": "payment gateway error"})


# ------------------------- Lifecycle -------------------------
@app.on_event("startup")
def on_startup():
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    payments.configure(settings.PAYMENT_SECRET_KEY)
    app.state.mongo_client = connect(settings)
    app.state.db = app.state.mongo_client[settings.DATABASE_NAME]
    try:
        ensure_indexes(app.state.db)
    except PyMongoError as e:
        logger.warning("Could not ensure indexes: %s", e)


@app.on_event("shutdown")
def on_shutdown():
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
        logger.info("MongoDB client closed")


# ------------------------- Routes -------------------------
@app.get("/")
def root():
    return "Hello luminaStore!"


@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    response = {
        "backend": "Running",
        "database": "Not Available",
        "database_name": db.name,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "Connected & Working"
        response["connection_status"] = "Connected"
    except Exception as e:
        response["database"] = f"Connected but Error: {str(e)[:50]}"
    return response


# Auth: POST /jwt
@app.post("/jwt", response_model=TokenResponse)
def issue_token(payload: TokenRequest):
    token = create_jwt(payload.model_dump())
    logger.info("Issued token for %s", payload.email)
    return TokenResponse(token=token)


# Users
@app.get("/user")
def list_users(db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    return serialize_docs(db[USERS].find())


@app.post("/user")
def register_user(user: User, db: Database = Depends(get_db)):
    doc = user.model_dump(exclude_none=True, exclude={"email"})
    # roles only change through elevation
    doc["role"] = "user"
    try:
        res = db[USERS].update_one({"email": user.email}, {"$setOnInsert": doc}, upsert=True)
    except DuplicateKeyError:
        res = None
    if res is None or res.upserted_id is None:
        return {"message": "user already exists"}
    logger.info("Registered user %s", user.email)
    return {"acknowledged": res.acknowledged, "insertedId": str(res.upserted_id)}


@app.get("/user/admin/{email}", response_model=AdminStatus)
def check_admin(email: str, db: Database = Depends(get_db), claim: dict = Depends(require_auth)):
    if claim.get("email") != email:
        return AdminStatus(admin=False)
    user = db[USERS].find_one({"email": email})
    return AdminStatus(admin=bool(user) and user.get("role") == "admin")


@app.patch("/user/admin/{user_id}")
def make_admin(user_id: str, db: Database = Depends(get_db), claim: dict = Depends(require_admin)):
    res = db[USERS].update_one({"_id": parse_object_id(user_id)}, {"$set": {"role": "admin"}})
    logger.info("User %s elevated to admin by %s", user_id, claim.get("email"))
    return update_result(res)


@app.delete("/user/{user_id}")
def delete_user(user_id: str, db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    res = db[USERS].delete_one({"_id": parse_object_id(user_id)})
    return delete_result(res)


# Clothes
@app.get("/clothes")
def list_clothes(db: Database = Depends(get_db)):
    return serialize_docs(db[CLOTHES].find())


@app.get("/clothes/category/{product_id}")
def get_clothes_item(product_id: str, db: Database = Depends(get_db)):
    return serialize_doc(db[CLOTHES].find_one({"_id": parse_object_id(product_id)}))


@app.patch("/clothes/category/{product_id}")
def update_clothes_item(product_id: str, payload: ProductUpdate, db: Database = Depends(get_db)):
    update_data = payload.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")
    res = db[CLOTHES].update_one({"_id": parse_object_id(product_id)}, {"$set": update_data})
    return update_result(res)


@app.post("/clothes")
def add_clothes_item(product: Product, db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    res = db[CLOTHES].insert_one(product.model_dump())
    logger.info("Created product %s", res.inserted_id)
    return insert_result(res)


@app.delete("/clothes/{product_id}")
def delete_clothes_item(product_id: str, db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    res = db[CLOTHES].delete_one({"_id": parse_object_id(product_id)})
    logger.info("Deleted product %s (%d removed)", product_id, res.deleted_count)
    return delete_result(res)


# Orders
@app.get("/order")
def list_orders(
    email: Optional[str] = None,
    db: Database = Depends(get_db),
    claim: dict = Depends(require_auth),
):
    if not email:
        return []
    if email != claim.get("email"):
        raise HTTPException(status_code=403, detail="forbidden access")
    return serialize_docs(db[ORDERS].find({"email": email}))


@app.post("/order")
def create_order(order: Order, db: Database = Depends(get_db)):
    return place_order(db, order.model_dump(exclude_none=True))


@app.delete("/order/{order_id}")
def delete_order(order_id: str, db: Database = Depends(get_db)):
    res = db[ORDERS].delete_one({"_id": parse_object_id(order_id)})
    return delete_result(res)


# Payments
@app.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(payload: PaymentIntentRequest, _: dict = Depends(require_auth)):
    return PaymentIntentResponse(clientSecret=payments.create_payment_intent(payload.price))


@app.get("/payment/{email}")
def list_payments(email: str, db: Database = Depends(get_db), claim: dict = Depends(require_auth)):
    if email != claim.get("email"):
        raise HTTPException(status_code=403, detail="forbidden access")
    return serialize_docs(db[PAYMENTS].find({"email": email}))


@app.post("/payment")
def create_payment(payment: Payment, db: Database = Depends(get_db), _: dict = Depends(require_auth)):
    return settle_payment(db, payment.model_dump(exclude_none=True))


# Statistics
@app.get("/admin-statistics", response_model=AdminStatistics)
def get_admin_statistics(db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    return admin_statistics(db)


@app.get("/order-statistics", response_model=List[CategoryStatistics])
def get_order_statistics(db: Database = Depends(get_db), _: dict = Depends(require_admin)):
    return order_statistics(db)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
