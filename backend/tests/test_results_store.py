import pytest

from resultboard import db
from resultboard.errors import NotFound
from resultboard.models import Result
from resultboard.services import results as store


def test_upsert_same_slot_overwrites(flask_app, make_game):
    game = make_game('A', 1)
    first = store.upsert_result(game.id, '2025-08-01', 940, '23', note='first')
    second = store.upsert_result(game.id, '2025-08-01', 940, '45')

    assert Result.query.count() == 1
    assert second.id == first.id
    assert second.value == '45'
    # note is only replaced when given
    assert second.note == 'first'
    assert second.source == 'manual'

    third = store.upsert_result(game.id, '2025-08-01', 940, '46', note='', source='bulk-matrix')
    assert third.note == ''
    assert third.source == 'bulk-matrix'
    assert Result.query.count() == 1


def test_upsert_distinct_triples_are_separate_rows(flask_app, make_game):
    a = make_game('A', 1)
    b = make_game('B', 2)
    store.upsert_result(a.id, '2025-08-01', 940, '1')
    store.upsert_result(a.id, '2025-08-01', 941, '2')
    store.upsert_result(a.id, '2025-08-02', 940, '3')
    store.upsert_result(b.id, '2025-08-01', 940, '4')
    assert Result.query.count() == 4


def test_find_by_date_orders_by_slot(flask_app, make_game):
    a = make_game('A', 1)
    b = make_game('B', 2)
    store.upsert_result(a.id, '2025-08-01', 900, 'a2')
    store.upsert_result(b.id, '2025-08-01', 300, 'b1')
    store.upsert_result(a.id, '2025-08-01', 100, 'a1')
    store.upsert_result(a.id, '2025-08-02', 50, 'other day')

    found = store.find_by_date('2025-08-01', [a.id, b.id])
    assert [(r.slot_min, r.value) for r in found] == [(100, 'a1'), (300, 'b1'), (900, 'a2')]
    assert [r.value for r in store.find_by_date('2025-08-01', [b.id])] == ['b1']
    assert store.find_by_date('2025-08-01', []) == []


def test_find_latest_at_or_before_picks_max_slot_per_game(flask_app, make_game):
    a = make_game('A', 1)
    b = make_game('B', 2)
    c = make_game('C', 3)
    store.upsert_result(a.id, '2025-08-01', 600, 'a1')
    store.upsert_result(a.id, '2025-08-01', 700, 'a2')
    store.upsert_result(a.id, '2025-08-01', 800, 'a3')
    store.upsert_result(b.id, '2025-08-01', 750, 'b1')
    store.upsert_result(c.id, '2025-08-01', 900, 'c1')

    found = {r.game_id: r.value for r in store.find_latest_at_or_before('2025-08-01', [a.id, b.id, c.id], 750)}
    assert found == {a.id: 'a2', b.id: 'b1'}

    found = {r.game_id: r.value for r in store.find_latest_at_or_before('2025-08-01', [a.id], 599)}
    assert found == {}


def test_find_latest_per_day_ignores_time_bound(flask_app, make_game):
    a = make_game('A', 1)
    b = make_game('B', 2)
    store.upsert_result(a.id, '2025-08-01', 10, 'early')
    store.upsert_result(a.id, '2025-08-01', 1439, 'late')
    store.upsert_result(a.id, '2025-08-02', 500, 'next')
    store.upsert_result(b.id, '2025-08-02', 20, 'b')
    store.upsert_result(b.id, '2025-09-01', 20, 'outside')

    found = store.find_latest_per_day(['2025-08-01', '2025-08-02'], [a.id, b.id])
    assert {(r.date_str, r.game_id): r.value for r in found} == {
        ('2025-08-01', a.id): 'late',
        ('2025-08-02', a.id): 'next',
        ('2025-08-02', b.id): 'b',
    }
    assert store.find_latest_per_day([], [a.id]) == []


def test_delete_result(flask_app, make_game):
    a = make_game('A', 1)
    rec = store.upsert_result(a.id, '2025-08-01', 940, '23')
    removed = store.delete_result(rec.id)
    assert removed['value'] == '23'
    assert Result.query.count() == 0
    with pytest.raises(NotFound):
        store.delete_result(rec.id)


def test_write_result_reports_insert_and_leaves_commit_to_caller(flask_app, make_game):
    a = make_game('A', 1)
    result_id, inserted = store.write_result(a.id, '2025-08-01', 940, '23')
    assert inserted is True
    again_id, inserted = store.write_result(a.id, '2025-08-01', 940, '24')
    assert (again_id, inserted) == (result_id, False)

    db.session.rollback()
    assert Result.query.count() == 0
