from services.checkout_service import cart_total, idempotency_key


def line(cart_item_id, price, quantity, item_id=None):
    return {
        "cart_item_id": cart_item_id,
        "item_id": item_id or cart_item_id,
        "title": "t", "description": "d", "image": None, "large_image": None,
        "price": price,
        "quantity": quantity,
    }


def test_cart_total():
    assert cart_total([line(1, 500, 2), line(2, 300, 1)]) == 1300
    assert cart_total([]) == 0


def test_idempotency_key_ignores_line_order():
    a = [line(1, 500, 2), line(2, 300, 1)]
    b = [line(2, 300, 1), line(1, 500, 2)]

    assert idempotency_key(1, 0, a) == idempotency_key(1, 0, b)


def test_idempotency_key_changes_with_cart_user_and_sequence():
    lines = [line(1, 500, 2)]
    key = idempotency_key(1, 0, lines)

    assert idempotency_key(2, 0, lines) != key
    assert idempotency_key(1, 1, lines) != key
    assert idempotency_key(1, 0, [line(1, 500, 3)]) != key
    assert idempotency_key(1, 0, [line(1, 400, 2)]) != key
