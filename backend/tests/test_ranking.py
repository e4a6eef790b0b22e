from typeracer.services.highscores.ranking import (
    compute_placement, rank_highscores, select_top, sort_scores, unique_best_by_email,
)


def _entry(name, cps, ts, email=None):
    return {'id': f'{name}-{ts}', 'name': name, 'email': email, 'cps': cps,
            'timestamp': f'2026-01-01T00:00:{ts:02d}.000Z'}


def test_sort_by_cps_desc_then_earlier_timestamp():
    scores = [_entry('a', 3.0, 5), _entry('b', 4.0, 9), _entry('c', 3.0, 1)]
    ordered = [s['name'] for s in sort_scores(scores)]
    assert ordered == ['b', 'c', 'a']


def test_unique_best_by_email_keeps_highest_per_email():
    scores = [
        _entry('Dana', 4.0, 1, email='dana@example.com'),
        _entry('Dana again', 6.0, 2, email=' DANA@example.com '),
        _entry('Eli', 5.0, 3, email='eli@example.com'),
    ]
    unique = rank_highscores(scores, unique_email=True)
    assert len(unique) == 2
    dana = [s for s in unique if s['email'].strip().lower() == 'dana@example.com']
    assert len(dana) == 1 and dana[0]['cps'] == 6.0
    assert unique[0]['cps'] == 6.0


def test_unique_best_falls_back_to_name_and_prefers_earlier_on_tie():
    scores = [_entry('Finn', 5.0, 7), _entry('finn', 5.0, 3), _entry('Gus', 1.0, 1)]
    unique = unique_best_by_email(scores)
    finn = [s for s in unique if s['name'].lower() == 'finn']
    assert len(finn) == 1
    assert finn[0]['timestamp'].endswith(':03.000Z')


def test_select_top_limits_and_disables_on_non_positive():
    scores = [_entry(f'p{i}', float(i), i) for i in range(12)]
    assert len(select_top(scores)) == 10
    assert len(select_top(scores, 3)) == 3
    assert len(select_top(scores, 0)) == 12
    assert len(select_top(scores, -1)) == 12


def test_placement_inserts_synthetic_candidate():
    board = [_entry('a', 6.0, 1), _entry('b', 4.0, 2)]
    assert compute_placement(board, 'me', 5.0) == 2
    # the snapshot passed in is not modified
    assert len(board) == 2


def test_placement_uses_existing_matching_entry():
    board = [_entry('a', 6.0, 1), _entry('me', 5.0, 2), _entry('b', 4.0, 3)]
    assert compute_placement(board, 'me', 5.0 + 1e-9) == 2


def test_placement_outside_snapshot_top():
    board = [_entry(f'p{i}', 10.0 - i * 0.1, i) for i in range(10)]
    assert compute_placement(board, 'slow', 1.0) == 11
