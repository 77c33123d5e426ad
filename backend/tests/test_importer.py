import pytest

from resultboard.errors import InvalidTimeFormat
from resultboard.models import Game, Result
from resultboard.services import importer


def test_seed_default_games_replaces_catalog(flask_app, make_game):
    make_game('OLD', 1)
    assert importer.seed_default_games() == 10
    games = Game.query.order_by(Game.order_index).all()
    assert [g.code for g in games][:3] == ['DSWR', 'FRBD', 'GZBD']
    assert [g.order_index for g in games] == list(range(1, 11))
    assert Game.query.filter_by(code='OLD').first() is None


def test_expand_matrix_skips_blanks_and_bad_days():
    rows = [
        {'DATE': '01', 'DSWR': 'XX', 'FRBD': '23'},
        {'DATE': '02', 'DSWR': '', 'FRBD': ' 7 '},
        {'DATE': '31', 'DSWR': '99', 'FRBD': '98'},
        {'DATE': 'total', 'DSWR': '1', 'FRBD': '2'},
    ]
    cells = importer.expand_matrix(rows, 2025, 2)
    assert cells == [
        {'dateStr': '2025-02-01', 'headerCode': 'FRBD', 'value': '23'},
        {'dateStr': '2025-02-02', 'headerCode': 'FRBD', 'value': '7'},
    ]


def test_import_matrix_upserts_at_default_slot(flask_app, make_game):
    disa = make_game('DISA', 1, default_time='0515AM')
    frbd = make_game('FRBD', 2, default_time='')
    rows = [
        {'DATE': '1', 'DSWR': '12', 'FRBD': '34', 'NOPE': '56'},
        {'DATE': '2', 'DSWR': 'XX', 'FRBD': '78', 'NOPE': ''},
    ]
    stats = importer.import_matrix(rows, 2025, 8)
    assert stats == {'upserted': 3, 'updated': 0, 'skipped': 1}

    # DSWR is an alias for DISA
    aliased = Result.query.filter_by(game_id=disa.id).one()
    assert (aliased.date_str, aliased.slot_min, aliased.value) == ('2025-08-01', 315, '12')
    assert aliased.source == 'bulk-matrix'

    # No default time falls back to IMPORT_DEFAULT_TIME (03:40 PM)
    slots = {r.slot_min for r in Result.query.filter_by(game_id=frbd.id)}
    assert slots == {940}


def test_import_matrix_overwrites_existing_values(flask_app, make_game):
    make_game('GZB', 1, default_time='15:40')
    importer.import_matrix([{'DATE': '1', 'GZBD': '10'}], 2025, 8)
    stats = importer.import_matrix([{'DATE': '1', 'GZBD': '11'}], 2025, 8)
    assert stats['updated'] == 1
    assert Result.query.one().value == '11'


def test_import_matrix_file(flask_app, make_game, tmp_path):
    make_game('GLI', 1, default_time='11:30 PM')
    path = tmp_path / 'aug.csv'
    path.write_text('DATE,GALI\n01,13\n02,XX\n03,44\n', encoding='utf-8')
    stats = importer.import_matrix_file(str(path), 2025, 8)
    assert stats == {'upserted': 2, 'updated': 0, 'skipped': 0}
    assert {r.date_str for r in Result.query.all()} == {'2025-08-01', '2025-08-03'}


def test_import_matrix_with_unusable_default_time_writes_nothing(flask_app, make_game):
    make_game('AAA', 1, default_time='3:40 PM')
    make_game('BBB', 2, default_time='evening')
    rows = [
        {'DATE': '1', 'AAA': '12', 'BBB': '34'},
        {'DATE': '2', 'AAA': '56', 'BBB': ''},
    ]
    with pytest.raises(InvalidTimeFormat) as excinfo:
        importer.import_matrix(rows, 2025, 8)
    assert 'BBB' in str(excinfo.value)
    assert Result.query.count() == 0


def test_import_matrix_counts_repeated_cell_once_inserted(flask_app, make_game):
    # DSWR aliases to DISA, so both columns land on the same slot
    make_game('DISA', 1, default_time='5:15 AM')
    stats = importer.import_matrix([{'DATE': '1', 'DISA': '10', 'DSWR': '11'}], 2025, 8)
    assert stats == {'upserted': 1, 'updated': 1, 'skipped': 0}
    assert Result.query.one().value == '11'
