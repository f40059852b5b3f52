# product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


# ceny brutto (totalPrice) razem z vat, tak jak oczekuje koszyk
PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "subtitle": "Mechanical", "price": "163.93", "totalPrice": "199.99", "vat": "36.06"},
    2: {"id": 2, "name": "Mouse", "subtitle": "Wireless", "price": "40.57", "totalPrice": "49.50", "vat": "8.93"},
    3: {"id": 3, "name": "Monitor", "subtitle": "27 inch", "price": "736.89", "totalPrice": "899.00", "vat": "162.11"},
}


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
