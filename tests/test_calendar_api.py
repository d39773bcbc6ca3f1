from models import db, StoredValue


def _create(client, **overrides):
    payload = {
        'title': 'Design review',
        'day': '2024-03-01',
        'start_time': '14:00',
        'end_time': '15:00',
    }
    payload.update(overrides)
    return client.post('/api/calendar/events', json=payload)


def test_create_and_list_day(client):
    resp = _create(client, description='Quarterly')
    assert resp.status_code == 201
    created = resp.get_json()
    assert created['id']
    assert created['start'] == '2024-03-01T14:00:00'

    day = client.get('/api/calendar/events?day=2024-03-01').get_json()
    assert [item['event_id'] for item in day] == [created['id']]
    assert day[0]['end'] == '2024-03-01T15:00:00'
    assert client.get('/api/calendar/events?day=2024-03-02').get_json() == []


def test_create_requires_title(client):
    resp = _create(client, title='  ')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Title is required'


def test_create_rejects_end_before_start(client):
    resp = _create(client, start_time='15:00', end_time='14:00')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'End time must be after start time'


def test_conflicting_create_returns_409(client):
    first = _create(client).get_json()
    resp = _create(client, title='Overlap', start_time='14:30', end_time='15:30')
    assert resp.status_code == 409
    body = resp.get_json()
    assert body['error'] == 'This event conflicts with an existing event'
    assert body['conflicting_event']['event_id'] == first['id']
    assert _create(client, title='After', start_time='15:00', end_time='16:00').status_code == 201


def test_weekly_event_expands_on_matching_days(client):
    _create(
        client,
        title='Planning',
        day='2024-01-01',
        start_time='09:00',
        end_time='10:00',
        recurrence={'kind': 'weekly', 'interval': 1, 'days_of_week': [1]},
    )
    monday = client.get('/api/calendar/events?day=2024-01-08').get_json()
    assert len(monday) == 1
    assert monday[0]['start'] == '2024-01-08T09:00:00'
    assert monday[0]['end'] == '2024-01-08T10:00:00'
    assert monday[0]['anchor_start'] == '2024-01-01T09:00:00'
    assert client.get('/api/calendar/events?day=2024-01-09').get_json() == []


def test_search_filter(client):
    _create(client, title='Dentist')
    _create(client, title='Lunch', start_time='12:00', end_time='13:00', description='with Sam')
    found = client.get('/api/calendar/events?day=2024-03-01&q=sam').get_json()
    assert [item['title'] for item in found] == ['Lunch']


def test_range_fetch_groups_by_day(client):
    _create(client, title='Daily', day='2024-03-01', recurrence={'kind': 'daily', 'interval': 2})
    body = client.get('/api/calendar/events?start=2024-03-01&end=2024-03-05').get_json()
    assert sorted(body['events']) == ['2024-03-01', '2024-03-03', '2024-03-05']

    resp = client.get('/api/calendar/events?start=2024-03-05&end=2024-03-01')
    assert resp.status_code == 400


def test_update_and_delete(client):
    created = _create(client).get_json()
    event_url = f"/api/calendar/events/{created['id']}"

    resp = client.put(event_url, json={
        'title': 'Moved review',
        'day': '2024-03-01',
        'start_time': '14:30',
        'end_time': '15:30',
    })
    assert resp.status_code == 200
    assert client.get(event_url).get_json()['title'] == 'Moved review'

    assert client.delete(event_url).status_code == 204
    assert client.get(event_url).status_code == 404
    assert client.delete(event_url).status_code == 404


def test_update_unknown_event(client):
    resp = client.put('/api/calendar/events/nope', json={'title': 'X', 'day': '2024-03-01', 'start_time': '9:00'})
    assert resp.status_code == 404


def test_move_endpoint(client):
    created = _create(client).get_json()
    _create(client, title='Busy', day='2024-03-04', start_time='14:30', end_time='16:00')

    blocked = client.post(f"/api/calendar/events/{created['id']}/move", json={'day': '2024-03-04'})
    assert blocked.status_code == 409

    moved = client.post(f"/api/calendar/events/{created['id']}/move", json={'day': '2024-03-05'})
    assert moved.status_code == 200
    assert moved.get_json()['start'] == '2024-03-05T14:00:00'
    assert moved.get_json()['end'] == '2024-03-05T15:00:00'


def test_conflict_check_is_a_dry_run(client):
    created = _create(client).get_json()
    candidate = {'title': 'Candidate', 'day': '2024-03-01', 'start_time': '14:30', 'end_time': '15:30'}

    first = client.post('/api/calendar/conflicts', json=candidate).get_json()
    second = client.post('/api/calendar/conflicts', json=candidate).get_json()
    assert first['conflict'] is True
    assert first == second

    candidate['exclude_id'] = created['id']
    assert client.post('/api/calendar/conflicts', json=candidate).get_json()['conflict'] is False
    assert len(client.get('/api/calendar/events?day=2024-03-01').get_json()) == 1


def test_month_grid(client):
    _create(client, title='Leap day', day='2024-02-29', start_time='08:00', end_time='09:00')
    body = client.get('/api/calendar/month?month=2024-02').get_json()

    assert body['month'] == '2024-02'
    assert body['prev_month'] == '2024-01'
    assert body['next_month'] == '2024-03'
    assert body['weekdays'][0] == 'Sun'
    assert len(body['days']) == 35
    assert body['days'][0]['date'] == '2024-01-28'
    assert body['days'][0]['is_current_month'] is False
    leap = next(d for d in body['days'] if d['date'] == '2024-02-29')
    assert [e['title'] for e in leap['events']] == ['Leap day']


def test_changes_are_persisted_and_reloaded(app, client):
    created = _create(client).get_json()
    assert db.session.get(StoredValue, 'events') is not None

    app.extensions.pop('event_catalogue')
    reloaded = client.get(f"/api/calendar/events/{created['id']}")
    assert reloaded.status_code == 200
    assert reloaded.get_json() == created


def test_long_running_series_keeps_queries_working(app, client):
    created = _create(client, title='Standup', recurrence={'kind': 'daily', 'occurrence_count': 3_000_000})
    assert created.status_code == 201
    event_id = created.get_json()['id']

    day = client.get('/api/calendar/events?day=2024-03-02')
    assert day.status_code == 200
    assert [item['event_id'] for item in day.get_json()] == [event_id]
    assert client.get('/api/calendar/month?month=2024-03').status_code == 200

    app.extensions.pop('event_catalogue')
    clash = client.post('/api/calendar/conflicts', json={
        'title': 'Overlap', 'day': '2030-06-01', 'start_time': '14:30', 'end_time': '15:30',
    })
    assert clash.get_json()['conflict'] is True


def test_non_object_bodies_are_rejected(client):
    created = _create(client).get_json()

    resp = client.post('/api/calendar/events', json=['x'])
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid payload'

    resp = client.put(f"/api/calendar/events/{created['id']}", json=['x'])
    assert resp.status_code == 400

    resp = client.post(f"/api/calendar/events/{created['id']}/move", json=['2024-03-02'])
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid payload'

    resp = client.post('/api/calendar/conflicts', json='2024-03-01')
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid payload'
