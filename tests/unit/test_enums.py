from src.sf_common.enums import OrderStatus, ProductCategory, TokenRole


def test_order_status_values_are_persisted_names() -> None:
    for status in OrderStatus:
        assert status.value == status.name


def test_order_status_is_str() -> None:
    assert OrderStatus.PAID == "PAID"


def test_product_category_values() -> None:
    assert {c.value for c in ProductCategory} == {"physical", "digital"}


def test_token_roles() -> None:
    assert TokenRole("admin") is TokenRole.ADMIN
    assert TokenRole("user") is TokenRole.USER
