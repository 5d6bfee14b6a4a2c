# mock_erpnext/mock_server.py
from fastapi import FastAPI, HTTPException, Header, Depends, Query, Body
from datetime import datetime
from typing import List, Optional, Dict, Any
import uvicorn
import json

MOCK_API_KEY = "test-api-key"
MOCK_API_SECRET = "test-api-secret"

# Тестовые товары
def init_test_data() -> List[Dict[str, Any]]:
    return [
        {
            "name": "BN-001",
            "item_name": "Ready-to-eat Bird's Nest",
            "custom_name_cn": "即食冰糖燕窝",
            "description": "Rock sugar bird's nest, ready to eat",
            "standard_rate": 168.0,
            "stock_uom": "瓶",
            "image": None,
            "item_group": "Bird's Nest",
            "custom_featured": 1,
            "is_sales_item": 1,
        },
        {
            "name": "FM-001",
            "item_name": "Fresh Stewed Fish Maw",
            "custom_name_cn": "鲜炖花胶",
            "description": "Deep sea fish maw, stewed daily",
            "standard_rate": 198.5,
            "stock_uom": "份",
            "image": None,
            "item_group": "Fish Maw",
            "custom_featured": 1,
            "is_sales_item": 1,
        },
        {
            "name": "GS-2026",
            "item_name": "Fortune Gift Box",
            "custom_name_cn": "发财礼盒",
            "description": "",
            "standard_rate": 368.0,
            "stock_uom": "套",
            "image": None,
            "item_group": "Seasonal Promotions",
            "custom_featured": 0,
            "is_sales_item": 1,
        },
        {
            "name": "PKG-BOX",
            "item_name": "Packaging Box",
            "custom_name_cn": None,
            "description": "Internal packaging material",
            "standard_rate": 2.0,
            "stock_uom": "Nos",
            "image": None,
            "item_group": "Consumable",
            "custom_featured": 0,
            "is_sales_item": 0,
        },
    ]

def _matches(doc: Dict[str, Any], filters: List[List[Any]]) -> bool:
    for field, op, value in filters:
        if op != "=":
            raise HTTPException(status_code=417, detail=f"Unsupported filter operator {op}")
        if doc.get(field) != value:
            return False
    return True

def _project(doc: Dict[str, Any], fields: Optional[List[str]]) -> Dict[str, Any]:
    if not fields:
        return {"name": doc["name"]}
    return {field: doc.get(field) for field in fields}

def create_mock_app(
    items: Optional[List[Dict[str, Any]]] = None,
    sales_orders: Optional[List[Dict[str, Any]]] = None,
    api_key: str = MOCK_API_KEY,
    api_secret: str = MOCK_API_SECRET
) -> FastAPI:
    """Мок ERPNext с хранилищем в памяти (app.state.docs)"""
    app = FastAPI(title="Mock ERPNext API", version="1.0")
    app.state.docs = {
        "Item": list(items if items is not None else init_test_data()),
        "Sales Order": list(sales_orders or []),
    }
    app.state.requests = []

    # Проверка токена: "token <key>:<secret>"
    def verify_token(authorization: Optional[str] = Header(None)):
        if authorization != f"token {api_key}:{api_secret}":
            raise HTTPException(status_code=401, detail="Invalid API token")
        return authorization

    def get_docs(doctype: str) -> List[Dict[str, Any]]:
        if doctype not in app.state.docs:
            raise HTTPException(status_code=404, detail=f"DocType {doctype} not found")
        return app.state.docs[doctype]

    @app.get("/api/resource/{doctype}")
    async def list_docs(
        doctype: str,
        filters: Optional[str] = Query(None),
        fields: Optional[str] = Query(None),
        limit_page_length: int = Query(20, ge=0),
        token: str = Depends(verify_token)
    ):
        """Список документов (мок)"""
        app.state.requests.append(("GET", doctype))
        docs = get_docs(doctype)
        parsed_filters = json.loads(filters) if filters else []
        parsed_fields = json.loads(fields) if fields else None

        selected = [d for d in docs if _matches(d, parsed_filters)]
        if limit_page_length:
            selected = selected[:limit_page_length]
        return {"data": [_project(d, parsed_fields) for d in selected]}

    @app.post("/api/resource/{doctype}")
    async def insert_doc(
        doctype: str,
        doc: Dict[str, Any] = Body(...),
        token: str = Depends(verify_token)
    ):
        """Создание документа (мок)"""
        app.state.requests.append(("POST", doctype))
        docs = get_docs(doctype)

        if doctype == "Sales Order":
            known_codes = {item["name"] for item in app.state.docs["Item"]}
            for line in doc.get("items", []):
                if line.get("item_code") not in known_codes:
                    raise HTTPException(
                        status_code=417,
                        detail=f"Could not find Item: {line.get('item_code')}"
                    )
            name = f"SAL-ORD-{datetime.now():%Y}-{len(docs) + 1:05d}"
            new_doc = {
                **doc,
                "name": name,
                "customer_name": doc.get("customer"),
                "status": "Draft",
                "grand_total": sum(line.get("qty", 0) * line.get("rate", 0) for line in doc.get("items", [])),
            }
        else:
            new_doc = {**doc, "name": doc.get("name") or f"{doctype}-{len(docs) + 1}"}

        docs.append(new_doc)
        return {"data": new_doc}

    @app.put("/api/resource/{doctype}/{name}")
    async def update_doc(
        doctype: str,
        name: str,
        changes: Dict[str, Any] = Body(...),
        token: str = Depends(verify_token)
    ):
        """Изменение документа (мок)"""
        app.state.requests.append(("PUT", doctype))
        doc = next((d for d in get_docs(doctype) if d["name"] == name), None)
        if not doc:
            raise HTTPException(status_code=404, detail=f"{doctype} {name} not found")
        doc.update(changes)
        return {"data": doc}

    return app

app = create_mock_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8080)
