from pos_terminal.models import Actor, InventoryLogType

CLERK = Actor(id='u1', name='clerk')


def test_append_is_newest_first(inventory_log):
    first = inventory_log.append('p1', 'Tea', InventoryLogType.STOCK_IN, 5, 0, 5, CLERK)
    second = inventory_log.append('p1', 'Tea', InventoryLogType.STOCK_OUT, 2, 5, 3, CLERK, 'Broken')

    entries = inventory_log.query('p1')
    assert [e.id for e in entries] == [second.id, first.id]
    assert entries[0].reason == 'Broken'
    assert first.id != second.id


def test_quantity_is_a_magnitude(inventory_log):
    entry = inventory_log.append('p1', 'Tea', 'adjustment', -4, 10, 6, CLERK)

    assert entry.quantity == 4
    assert entry.type == InventoryLogType.ADJUSTMENT


def test_query_all_and_by_type(container, inventory_log):
    seeded = len(inventory_log.query())
    inventory_log.append('p9', 'Tea', InventoryLogType.SALE, 1, 3, 2, CLERK)

    assert len(inventory_log.query()) == seeded + 1
    assert [e.product_id for e in inventory_log.query_by_type('sale')] == ['p9']


def test_seed_logs_one_stock_in_per_product(catalog, inventory_log):
    for product in catalog.get_products():
        entries = inventory_log.query(product.id)
        assert len(entries) == 1
        assert entries[0].new_stock == product.stock


def test_stock_history_replays_to_current_stock(catalog, inventory_log, chips):
    actor = Actor(id='m', name='manager1')
    catalog.receive_stock(chips.id, 20, actor)
    catalog.remove_stock(chips.id, 5, actor)
    catalog.set_stock(chips.id, 100, actor)

    entries = list(reversed(inventory_log.query(chips.id)))
    for earlier, later in zip(entries, entries[1:]):
        assert later.previous_stock == earlier.new_stock
    assert entries[-1].new_stock == catalog.get_product_by_id(chips.id).stock == 100


def test_to_dict(inventory_log):
    entry = inventory_log.append('p1', 'Tea', InventoryLogType.STOCK_IN, 5, 0, 5, CLERK)

    data = entry.to_dict()
    assert data['type'] == 'stock_in'
    assert data['user_name'] == 'clerk'
    assert data['created_at'].endswith('+00:00')
