import json
from datetime import datetime, timezone
import httpx
import pytest
from storesync.models.order import OrderStatus
from storesync.schemas.order import LineItem, parse_line_items, serialize_line_items
from storesync.services.erpnext_client import ErpNextClient, NotConfiguredError, RemoteError
from storesync.services.order_sync import OrderSyncEngine, UnresolvedReferenceError
from storesync.services.orders import push_and_record
from storesync.services.product_sync import ProductSyncEngine

FIXED_NOW = datetime(2024, 3, 5, 10, 30, tzinfo=timezone.utc)

def recording_client(responses=None):
    """Клиент на MockTransport, запоминающий все запросы"""
    calls = []

    def handler(request):
        calls.append(request)
        return (responses or {}).get(request.method, httpx.Response(200, json={"data": {}}))

    client = ErpNextClient(
        base_url="http://erp.test", api_key="k", api_secret="s",
        http_client=httpx.Client(transport=httpx.MockTransport(handler))
    )
    return client, calls

def add_product(store, name, name_en=None, code=None):
    return store.upsert_product(None, {
        "name": name,
        "name_en": name_en,
        "description": "",
        "price": 100,
        "image": "/img.png",
        "category": "other",
        "erpnext_item_code": code,
    })

def add_order(store, order_number="LY20240305001", items=None, **fields):
    items = items or [LineItem(name="鲜炖花胶", quantity=2, price=198)]
    values = {
        "order_number": order_number,
        "status": OrderStatus.PENDING.value,
        "customer_name": "Lim Mei Ling",
        "customer_phone": "+60123456789",
        "customer_email": "lim@example.com",
        "items": serialize_line_items(items),
        "total_amount": sum(i.price * i.quantity for i in items),
        "shipping_address": "12 Jalan Ampang",
    }
    values.update(fields)
    return store.upsert_order(None, values)

def test_push_aborts_before_any_network_call(store):
    client, calls = recording_client()
    add_product(store, "鲜炖花胶", "Fresh Stewed Fish Maw", code="FM-001")
    order = add_order(store, items=[
        LineItem(name="鲜炖花胶", quantity=1, price=198),
        LineItem(name="Mystery Tea", quantity=1, price=30),
    ])

    with pytest.raises(UnresolvedReferenceError) as exc_info:
        OrderSyncEngine(client, store).push_order(order)

    assert exc_info.value.item_names == ["Mystery Tea"]
    assert calls == []

def test_push_lists_every_unresolved_item(store):
    client, calls = recording_client()
    order = add_order(store, items=[
        LineItem(name="Mystery Tea", quantity=1, price=30),
        LineItem(name="Unknown Cake", quantity=1, price=40),
    ])

    with pytest.raises(UnresolvedReferenceError) as exc_info:
        OrderSyncEngine(client, store).push_order(order)

    assert exc_info.value.item_names == ["Mystery Tea", "Unknown Cake"]
    assert calls == []

def test_push_builds_sales_order(store):
    client, calls = recording_client({
        "POST": httpx.Response(200, json={"data": {"name": "SAL-ORD-2024-00001"}})
    })
    add_product(store, "鲜炖花胶", "Fresh Stewed Fish Maw", code="FM-001")
    order = add_order(store, items=[
        LineItem(name="Fresh Stewed Fish Maw", quantity=2, price=198),
        LineItem(name="Gift wrap", quantity=1, price=5, erpnext_item_code="WRAP-01"),
    ])

    result = OrderSyncEngine(client, store, clock=lambda: FIXED_NOW).push_order(order)

    assert result.status == "pushed"
    assert result.erpnext_id == "SAL-ORD-2024-00001"
    assert len(calls) == 1
    assert calls[0].url.path == "/api/resource/Sales Order"
    payload = json.loads(calls[0].content)
    assert payload == {
        "doctype": "Sales Order",
        "customer": "Lim Mei Ling",
        "contact_phone": "+60123456789",
        "contact_email": "lim@example.com",
        "po_no": "LY20240305001",
        "delivery_date": "2024-03-12",
        "items": [
            {"item_code": "FM-001", "qty": 2, "rate": 198},
            {"item_code": "WRAP-01", "qty": 1, "rate": 5},
        ],
    }

def test_push_skipped_when_not_configured(store):
    order = add_order(store)
    result = OrderSyncEngine(ErpNextClient(), store).push_order(order)

    assert result.skipped
    assert result.erpnext_id is None

def test_push_rejected_by_erp_raises_remote_error(store):
    client, _ = recording_client({"POST": httpx.Response(417, text="Customer Lim Mei Ling not found")})
    add_product(store, "鲜炖花胶", code="FM-001")
    order = add_order(store)

    with pytest.raises(RemoteError) as exc_info:
        OrderSyncEngine(client, store).push_order(order)

    assert exc_info.value.status_code == 417
    assert "not found" in exc_info.value.body

def test_push_against_mock_server(store, erp_client, erp_app):
    ProductSyncEngine(erp_client, store).sync_products()
    order = add_order(store, items=[LineItem(name="即食冰糖燕窝", quantity=3, price=168)])

    result = OrderSyncEngine(erp_client, store).push_order(order)

    sales_orders = erp_app.state.docs["Sales Order"]
    assert result.erpnext_id == sales_orders[0]["name"]
    assert sales_orders[0]["po_no"] == "LY20240305001"
    assert sales_orders[0]["items"] == [{"item_code": "BN-001", "qty": 3, "rate": 168}]

def test_pull_updates_only_status_and_erp_id(store, erp_app, erp_client):
    local = add_order(store)
    erp_app.state.docs["Sales Order"].append({
        "name": "SAL-ORD-2024-00007",
        "customer_name": "Someone Else",
        "contact_phone": "000",
        "status": "To Deliver",
        "grand_total": 999.0,
        "items": [{"item_code": "BN-001", "item_name": "Other", "qty": 9, "rate": 1}],
        "po_no": "LY20240305001",
    })

    result = OrderSyncEngine(erp_client, store).pull_orders()

    assert (result.created, result.updated, result.weak_matches) == (0, 1, 1)
    orders = store.list_orders()
    assert len(orders) == 1
    updated = orders[0]
    assert updated.id == local.id
    assert updated.status == OrderStatus.SHIPPED.value
    assert updated.erpnext_id == "SAL-ORD-2024-00007"
    assert updated.customer_name == "Lim Mei Ling"
    assert updated.customer_phone == "+60123456789"
    assert updated.total_amount == local.total_amount
    assert parse_line_items(updated.items) == [LineItem(name="鲜炖花胶", quantity=2, price=198)]

def test_pull_matches_by_erp_id_first(store, erp_app, erp_client):
    add_order(store, order_number="LY20240305001", erpnext_id="SO-1")
    add_order(store, order_number="LY20240305002")
    erp_app.state.docs["Sales Order"].append({
        "name": "SO-1", "customer_name": "Lim", "status": "Completed",
        "grand_total": 396, "po_no": "LY20240305002",
    })

    result = OrderSyncEngine(erp_client, store).pull_orders()

    assert (result.updated, result.weak_matches) == (1, 0)
    statuses = {o.order_number: o.status for o in store.list_orders()}
    assert statuses == {"LY20240305001": "delivered", "LY20240305002": "pending"}

def test_pull_creates_erp_origin_orders(store, erp_app, erp_client):
    erp_app.state.docs["Sales Order"].extend([
        {
            "name": "SO-10", "customer_name": "Tan Ah Kow", "contact_phone": "+60111",
            "status": "On Hold", "grand_total": 336.4,
            "items": [{"item_code": "BN-001", "item_name": "Ready-to-eat Bird's Nest", "qty": 2, "rate": 168.2}],
            "shipping_address_name": "Tan-Shipping",
        },
        {"name": "SO-11", "customer_name": "Wong", "status": "To Bill", "grand_total": 10},
    ])
    engine = OrderSyncEngine(erp_client, store, clock=lambda: FIXED_NOW)

    first = engine.pull_orders()
    second = engine.pull_orders()

    assert (first.created, first.updated) == (2, 0)
    assert (second.created, second.updated) == (0, 2)

    orders = {o.erpnext_id: o for o in store.list_orders()}
    tan = orders["SO-10"]
    assert tan.order_number.startswith("ERN")
    assert tan.status == "pending"
    assert tan.source == "erpnext"
    assert tan.total_amount == 336
    assert tan.shipping_address == "Tan-Shipping"
    assert parse_line_items(tan.items) == [
        LineItem(name="Ready-to-eat Bird's Nest", quantity=2, price=168, erpnext_item_code="BN-001")
    ]
    # Два заказа без po_no в одну миллисекунду получают разные номера
    assert orders["SO-11"].order_number != tan.order_number
    assert orders["SO-11"].status == "processing"

def test_pull_requires_configuration(store):
    with pytest.raises(NotConfiguredError):
        OrderSyncEngine(ErpNextClient(), store).pull_orders()

def test_push_order_status(store, erp_app, erp_client):
    erp_app.state.docs["Sales Order"].append({"name": "SO-1", "status": "Draft"})
    order = add_order(store, erpnext_id="SO-1", status="shipped")
    engine = OrderSyncEngine(erp_client, store)

    assert engine.push_order_status(order) is True
    assert erp_app.state.docs["Sales Order"][0]["status"] == "To Deliver"

    not_linked = add_order(store, order_number="LY20240305002")
    assert engine.push_order_status(not_linked) is False
    assert OrderSyncEngine(ErpNextClient(), store).push_order_status(order) is False

def test_pull_skips_order_with_negative_line_and_continues(store, erp_app, erp_client):
    erp_app.state.docs["Sales Order"].extend([
        {
            "name": "SO-1", "customer_name": "Tan", "status": "To Bill", "grand_total": 90,
            "items": [
                {"item_code": "BN-001", "item_name": "Bird's Nest", "qty": 1, "rate": 100},
                {"item_code": "DISC", "item_name": "Discount", "qty": 1, "rate": -10},
            ],
        },
        {"name": "SO-2", "customer_name": "Wong", "status": "Completed", "grand_total": 10},
    ])

    result = OrderSyncEngine(erp_client, store, clock=lambda: FIXED_NOW).pull_orders()

    assert (result.created, result.skipped) == (1, 1)
    assert [o.erpnext_id for o in store.list_orders()] == ["SO-2"]

def test_repeated_push_creates_one_sales_order(store, erp_app, erp_client):
    ProductSyncEngine(erp_client, store).sync_products()
    order = add_order(store)
    engine = OrderSyncEngine(erp_client, store)

    first = push_and_record(engine, order)
    second = push_and_record(engine, store.get_order(order.id))

    assert first.status == "pushed"
    assert second.status == "already_pushed"
    assert second.erpnext_id == first.erpnext_id
    assert len(erp_app.state.docs["Sales Order"]) == 1
    assert erp_app.state.requests.count(("POST", "Sales Order")) == 1

def test_push_of_linked_order_makes_no_network_call(store):
    client, calls = recording_client()
    order = add_order(store, erpnext_id="SO-9")

    result = OrderSyncEngine(client, store).push_order(order)

    assert (result.status, result.erpnext_id) == ("already_pushed", "SO-9")
    assert calls == []
