import os
from datetime import date, timedelta

from dotenv import load_dotenv
from flask import Flask, request, jsonify

load_dotenv()

from backend.date_utils import calendar_days, month_bounds, weekday_names
from backend.event_catalogue import (
    EventCatalogue,
    EventConflictError,
    EventNotFoundError,
    EventValidationError,
)
from models import db
from services.event_store import load_events, save_events
from services.validation_service import parse_day_value, parse_event_payload, parse_month_value

app = Flask(__name__)
app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('CALENDAR_DATABASE_URI', 'sqlite:///calendar.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
app.config['EVENTS_STORAGE_KEY'] = os.environ.get('EVENTS_STORAGE_KEY', 'events')
app.config['MAX_RANGE_DAYS'] = int(os.environ.get('MAX_RANGE_DAYS', 366))

db.init_app(app)

with app.app_context():
    db.create_all()


def get_catalogue():
    """The app's event catalogue, loaded from storage on first use."""
    catalogue = app.extensions.get('event_catalogue')
    if catalogue is None:
        catalogue = EventCatalogue(load_events())
        app.extensions['event_catalogue'] = catalogue
        app.logger.info(f"Loaded {len(catalogue)} events from storage")
    return catalogue


def _persist(catalogue):
    # Storage is best-effort; the in-memory catalogue stays authoritative.
    if not save_events(catalogue.events):
        app.logger.warning("Event changes kept in memory only; storage unavailable")


def _error_response(exc):
    if isinstance(exc, EventNotFoundError):
        return jsonify({'error': str(exc)}), 404
    payload = {'error': str(exc)}
    if isinstance(exc, EventConflictError):
        if exc.occurrence is not None:
            payload['conflicting_event'] = exc.occurrence.to_dict()
        return jsonify(payload), 409
    return jsonify(payload), 400


# Calendar API

@app.route('/api/calendar/events', methods=['GET', 'POST'])
def calendar_events():
    catalogue = get_catalogue()
    query = (request.args.get('q') or '').strip() or None

    # Range fetch for the month view (start & end inclusive)
    if request.method == 'GET' and (request.args.get('start') or request.args.get('end')):
        start_raw = request.args.get('start')
        end_raw = request.args.get('end')
        start_day = parse_day_value(start_raw) if start_raw else date.today().replace(day=1)
        if not start_day:
            return jsonify({'error': 'Invalid start date'}), 400
        if end_raw:
            end_day = parse_day_value(end_raw)
            if not end_day:
                return jsonify({'error': 'Invalid end date'}), 400
        else:
            # Default end to end-of-month for start_day
            _, end_day = month_bounds(start_day)
        if end_day < start_day:
            return jsonify({'error': 'end must be on/after start'}), 400
        if (end_day - start_day).days >= app.config['MAX_RANGE_DAYS']:
            return jsonify({'error': 'Date range too large'}), 400

        by_day = catalogue.occurrences_between(start_day, end_day, query)
        return jsonify({
            'start': start_day.isoformat(),
            'end': end_day.isoformat(),
            'events': {
                day_value.isoformat(): [occ.to_dict() for occ in items]
                for day_value, items in by_day.items()
            }
        })

    if request.method == 'GET':
        day_str = request.args.get('day') or date.today().isoformat()
        day_obj = parse_day_value(day_str)
        if not day_obj:
            return jsonify({'error': 'Invalid day'}), 400
        return jsonify([occ.to_dict() for occ in catalogue.occurrences_on(day_obj, query)])

    try:
        draft = parse_event_payload(request.json or {})
        event = catalogue.add(draft)
    except EventValidationError as exc:
        app.logger.info(f"Event create rejected: {exc}")
        return _error_response(exc)
    _persist(catalogue)
    return jsonify(event.to_dict()), 201


@app.route('/api/calendar/events/<event_id>', methods=['GET', 'PUT', 'DELETE'])
def calendar_event_detail(event_id):
    catalogue = get_catalogue()
    try:
        if request.method == 'GET':
            return jsonify(catalogue.get(event_id).to_dict())

        if request.method == 'DELETE':
            catalogue.delete(event_id)
            _persist(catalogue)
            return '', 204

        event = parse_event_payload(request.json or {}, event_id=event_id)
        catalogue.update(event)
    except (EventValidationError, EventNotFoundError) as exc:
        app.logger.info(f"Event {event_id} {request.method} rejected: {exc}")
        return _error_response(exc)
    _persist(catalogue)
    return jsonify(event.to_dict())


@app.route('/api/calendar/events/<event_id>/move', methods=['POST'])
def move_calendar_event(event_id):
    catalogue = get_catalogue()
    data = request.json or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid payload'}), 400
    day_obj = parse_day_value(data.get('day'))
    if not day_obj:
        return jsonify({'error': 'Invalid day'}), 400
    try:
        event = catalogue.move(event_id, day_obj)
    except (EventValidationError, EventNotFoundError) as exc:
        app.logger.info(f"Move of event {event_id} to {day_obj} rejected: {exc}")
        return _error_response(exc)
    _persist(catalogue)
    return jsonify(event.to_dict())


@app.route('/api/calendar/conflicts', methods=['POST'])
def check_calendar_conflict():
    """Dry-run conflict check for a form that is about to be submitted."""
    catalogue = get_catalogue()
    data = request.json or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid payload'}), 400
    try:
        candidate = parse_event_payload(data)
    except EventValidationError as exc:
        return _error_response(exc)
    clash = catalogue.find_conflict(candidate, exclude_id=data.get('exclude_id'))
    return jsonify({
        'conflict': clash is not None,
        'conflicting_event': clash.to_dict() if clash else None
    })


@app.route('/api/calendar/month', methods=['GET'])
def calendar_month():
    catalogue = get_catalogue()
    month_raw = request.args.get('month')
    month_day = parse_month_value(month_raw) if month_raw else date.today().replace(day=1)
    if not month_day:
        return jsonify({'error': 'Invalid month'}), 400
    query = (request.args.get('q') or '').strip() or None

    grid = calendar_days(month_day)
    by_day = catalogue.occurrences_between(grid[0]['date'], grid[-1]['date'], query)
    days = []
    for cell in grid:
        days.append({
            'date': cell['date'].isoformat(),
            'is_current_month': cell['is_current_month'],
            'is_today': cell['is_today'],
            'events': [occ.to_dict() for occ in by_day.get(cell['date'], [])]
        })
    return jsonify({
        'month': month_day.strftime('%Y-%m'),
        'prev_month': (month_day - timedelta(days=1)).strftime('%Y-%m'),
        'next_month': (month_bounds(month_day)[1] + timedelta(days=1)).strftime('%Y-%m'),
        'weekdays': weekday_names(),
        'days': days
    })


if __name__ == '__main__':
    # The catalogue assumes a single writer at a time.
    app.run(host='0.0.0.0', debug=True, threaded=False)
