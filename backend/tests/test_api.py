from typeracer.services.events.broadcast import active_event_broadcaster


def _score(client, name, chars, seconds=60, email=None, event_id=None):
    body = {'name': name, 'charsTyped': chars, 'durationSeconds': seconds}
    if email:
        body['email'] = email
    url = '/api/scores' + (f'?eventId={event_id}' if event_id else '')
    return client.post(url, json=body)


def test_root_welcome(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_submit_score_derives_cps(client):
    res = _score(client, 'Alice', 300, 60)
    assert res.status_code == 201
    entry = res.get_json()
    assert entry['cps'] == 5.0
    assert entry['durationMs'] == 60000
    assert entry['durationSeconds'] == 60
    assert entry['timestamp'].endswith('Z')
    assert entry['id']


def test_submit_score_prefers_duration_ms(client):
    res = client.post('/api/scores', json={'name': 'Bo', 'charsTyped': 10, 'durationMs': 2500, 'durationSeconds': 99})
    entry = res.get_json()
    assert res.status_code == 201
    assert entry['cps'] == 4.0
    assert entry['durationSeconds'] == 3


def test_submit_score_rejects_bad_payloads(client):
    res = client.post('/api/scores', json={'name': 'Alice', 'charsTyped': 300})
    assert res.status_code == 400
    body = res.get_json()
    assert body['error'] == 'Invalid payload'
    assert any('duration' in d for d in body['details'])

    for bad in (
        {'name': '', 'charsTyped': 1, 'durationSeconds': 1},
        {'name': 'x', 'charsTyped': -1, 'durationSeconds': 1},
        {'name': 'x', 'charsTyped': 1.5, 'durationSeconds': 1},
        {'name': 'x', 'charsTyped': 1, 'durationMs': 0},
        {'name': 'x', 'charsTyped': 1, 'durationSeconds': 1, 'accuracy': 1.2},
    ):
        assert client.post('/api/scores', json=bad).status_code == 400
    assert client.post('/api/scores', data='not json', content_type='text/plain').status_code == 400
    assert client.get('/api/highscores').get_json() == []


def test_highscores_sorted_and_limited(client):
    for i in range(12):
        assert _score(client, f'p{i}', 60 + i * 6).status_code == 201
    board = client.get('/api/highscores').get_json()
    assert len(board) == 10
    cps = [e['cps'] for e in board]
    assert cps == sorted(cps, reverse=True)
    assert board[0]['name'] == 'p11'

    assert len(client.get('/api/highscores?limit=3').get_json()) == 3
    assert len(client.get('/api/highscores?limit=0').get_json()) == 12
    assert len(client.get('/api/highscores?limit=abc').get_json()) == 10


def test_highscores_unique_email(client):
    _score(client, 'Dana', 240, email='dana@example.com')
    _score(client, 'Dana', 360, email='Dana@Example.com')
    everything = client.get('/api/highscores').get_json()
    assert len(everything) == 2
    unique = client.get('/api/highscores?uniqueEmail=1').get_json()
    assert len(unique) == 1
    assert unique[0]['cps'] == 6.0


def test_top_score(client):
    assert client.get('/api/highscores/top').status_code == 404
    _score(client, 'slow', 120)
    _score(client, 'fast', 300)
    res = client.get('/api/highscores/top')
    assert res.status_code == 200
    assert res.get_json()['name'] == 'fast'


def test_clear_highscores(client):
    _score(client, 'a', 60)
    assert client.delete('/api/highscores').status_code == 204
    assert client.get('/api/highscores').get_json() == []


def test_players_register_and_duplicates(client):
    res = client.post('/api/players', json={'name': 'Alice', 'email': 'alice@example.com'})
    assert res.status_code == 201
    assert res.get_json()['name'] == 'Alice'

    dup = client.post('/api/players', json={'name': 'Other', 'email': ' ALICE@example.com'})
    assert dup.status_code == 409

    assert client.post('/api/players', json={'name': 'NoMail'}).status_code == 400

    players = client.get('/api/players').get_json()
    assert [p['email'] for p in players] == ['alice@example.com']


def test_check_name_covers_players_and_scores(client):
    client.post('/api/players', json={'name': 'Alice', 'email': 'alice@example.com'})
    _score(client, 'Bob', 60)
    assert client.get('/api/players/check-name?name=alice').get_json() == {'available': False}
    assert client.get('/api/players/check-name?name=BOB').get_json() == {'available': False}
    assert client.get('/api/players/check-name?name=Cara').get_json() == {'available': True}
    assert client.get('/api/players/check-name?name=').get_json() == {'available': False}


def test_clear_players(client):
    client.post('/api/players', json={'name': 'Alice', 'email': 'alice@example.com'})
    assert client.delete('/api/players').status_code == 204
    assert client.get('/api/players').get_json() == []


def test_unknown_event_is_404(client):
    assert client.get('/api/highscores?eventId=nope').status_code == 404
    assert _score(client, 'x', 1, event_id='nope').status_code == 404
    assert client.get('/api/players?eventId=nope').status_code == 404
    assert client.put('/api/events/nope', json={'name': 'x'}).status_code == 404
    assert client.post('/api/events/nope/activate').status_code == 404


def test_default_event_is_active(client):
    active = client.get('/api/events/active').get_json()
    assert active['id'] == 'default'
    assert active['active'] is True
    assert [e['id'] for e in client.get('/api/events').get_json()] == ['default']


def test_event_lifecycle(client):
    res = client.post('/api/events', json={'name': 'Meetup', 'description': 'Friday', 'date': '2026-11-01'})
    assert res.status_code == 201
    event = res.get_json()
    assert event['active'] is False

    assert client.post('/api/events', json={'description': 'no name'}).status_code == 400

    res = client.put(f"/api/events/{event['id']}", json={'name': 'Meetup 2'})
    assert res.status_code == 200
    assert res.get_json()['name'] == 'Meetup 2'
    assert res.get_json()['date'] == '2026-11-01'

    res = client.post(f"/api/events/{event['id']}/activate")
    assert res.get_json()['active'] is True
    assert client.get('/api/events/active').get_json()['id'] == event['id']
    states = {e['id']: e['active'] for e in client.get('/api/events').get_json()}
    assert states == {'default': False, event['id']: True}

    # active and default events are protected
    assert client.delete(f"/api/events/{event['id']}").status_code == 400
    client.post('/api/events/default/activate')
    assert client.delete('/api/events/default').status_code == 400
    assert client.delete(f"/api/events/{event['id']}").status_code == 204
    assert client.get(f"/api/highscores?eventId={event['id']}").status_code == 404


def test_scores_are_isolated_per_event(client):
    event = client.post('/api/events', json={'name': 'Side'}).get_json()
    _score(client, 'main', 120)
    _score(client, 'side', 300, event_id=event['id'])
    client.post(f"/api/players?eventId={event['id']}", json={'name': 'side', 'email': 's@example.com'})

    assert [e['name'] for e in client.get('/api/highscores').get_json()] == ['main']
    side = client.get(f"/api/highscores?eventId={event['id']}").get_json()
    assert [e['name'] for e in side] == ['side']

    # submissions without eventId follow the active event
    client.post(f"/api/events/{event['id']}/activate")
    _score(client, 'later', 60)
    side = client.get(f"/api/highscores?eventId={event['id']}").get_json()
    assert {e['name'] for e in side} == {'side', 'later'}

    client.post('/api/events/default/activate')
    assert client.delete(f"/api/events/{event['id']}").status_code == 204
    assert [e['name'] for e in client.get('/api/highscores?eventId=default').get_json()] == ['main']


def test_active_event_stream(client):
    event = client.post('/api/events', json={'name': 'Live'}).get_json()
    res = client.get('/api/events/active/stream', buffered=False)
    assert res.status_code == 200
    assert res.mimetype == 'text/event-stream'
    chunks = iter(res.response)
    first = next(chunks)
    first = first.decode() if isinstance(first, bytes) else first
    assert first.startswith('event: active_event\n')
    assert '"id": "default"' in first
    assert active_event_broadcaster.subscriber_count == 1

    client.post(f"/api/events/{event['id']}/activate")
    second = next(chunks)
    second = second.decode() if isinstance(second, bytes) else second
    assert f'"id": "{event["id"]}"' in second
    res.close()
    assert active_event_broadcaster.subscriber_count == 0


def test_race_config(client, race_text):
    body = client.get('/api/race').get_json()
    assert body == {'text': race_text, 'durationSeconds': 60, 'ghostDefaultCps': 3.5}
