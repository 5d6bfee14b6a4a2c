from types import SimpleNamespace
import pytest
from storesync.schemas.erpnext import ErpItem
from storesync.services.product_sync import PRODUCT_MATCHER
from storesync.services.record_matcher import MatchKey, RecordMatcher

def make_product(id, name, name_en=None, code=None):
    return SimpleNamespace(id=id, name=name, name_en=name_en, erpnext_item_code=code)

def test_strong_key_wins_over_earlier_weak_candidate():
    """Кандидат по коду ERPNext важнее кандидата по названию, даже если тот раньше в списке"""
    by_name = make_product(1, "鲜炖花胶", name_en="Fresh Stewed Fish Maw")
    by_code = make_product(2, "Old name", code="FM-001")
    item = ErpItem(name="FM-001", item_name="Fresh Stewed Fish Maw", custom_name_cn="鲜炖花胶")

    match = PRODUCT_MATCHER.match([by_name, by_code], item)

    assert match.record is by_code
    assert match.key == "erpnext_item_code"
    assert match.strong

def test_second_key_wins_over_third():
    by_cn_name = make_product(1, "鲜炖花胶")
    by_en_name = make_product(2, "Something else", name_en="Fresh Stewed Fish Maw")
    item = ErpItem(name="FM-001", item_name="Fresh Stewed Fish Maw", custom_name_cn="鲜炖花胶")

    match = PRODUCT_MATCHER.match([by_cn_name, by_en_name], item)

    assert match.record is by_en_name
    assert match.key == "name_en"
    assert not match.strong

def test_no_match_returns_none():
    item = ErpItem(name="BN-001", item_name="Bird's Nest")
    assert PRODUCT_MATCHER.match([make_product(1, "鲜炖花胶", code="FM-001")], item) is None
    assert PRODUCT_MATCHER.match([], item) is None

def test_empty_external_value_never_matches():
    """Товар без name_en не совпадает с позицией без custom_name_cn"""
    legacy = make_product(1, "", name_en=None)
    item = ErpItem(name="BN-002", item_name="Bird's Nest Tart", custom_name_cn=None)
    assert PRODUCT_MATCHER.match([legacy], item) is None

def test_matcher_requires_keys():
    with pytest.raises(ValueError):
        RecordMatcher([])

def test_generic_keys():
    matcher = RecordMatcher([
        MatchKey("id", lambda r: r["ext"], lambda e: e["id"], strong=True),
        MatchKey("email", lambda r: r["email"], lambda e: e["email"]),
    ])
    records = [{"ext": None, "email": "a@example.com"}, {"ext": "X1", "email": "b@example.com"}]

    match = matcher.match(records, {"id": "X2", "email": "a@example.com"})

    assert match.record is records[0]
    assert match.key == "email"

def test_weak_keys_skip_products_with_another_code():
    """Товар с кодом ERPNext не переходит к другой позиции с тем же названием"""
    coded = make_product(1, "Tea", name_en="Tea", code="TEA-A")
    item = ErpItem(name="TEA-B", item_name="Tea", custom_name_cn="Tea")

    assert PRODUCT_MATCHER.match([coded], item) is None

def test_eligible_filter_only_limits_its_key():
    matcher = RecordMatcher([
        MatchKey("id", lambda r: r["ext"], lambda e: e["id"], strong=True),
        MatchKey("email", lambda r: r["email"], lambda e: e["email"], eligible=lambda r: r["ext"] is None),
    ])
    linked = {"ext": "X1", "email": "a@example.com"}

    assert matcher.match([linked], {"id": "X2", "email": "a@example.com"}) is None
    assert matcher.match([linked], {"id": "X1", "email": "b@example.com"}).record is linked
