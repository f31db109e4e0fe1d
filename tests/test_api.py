"""Tests for the JSON API surface."""

from datetime import date, timedelta

import pytest

from models import db, UserChallenge
from app import render_markdown


@pytest.fixture
def logged_in(client, user):
    response = client.post('/auth/login', json={'username': 'alice', 'password': 'secret'})
    assert response.status_code == 200
    return client


def start(client, challenge_id, schedule_type='both'):
    return client.post(f'/api/challenges/{challenge_id}/start', json={'schedule_type': schedule_type})


def test_requires_login(client, challenge):
    assert client.get('/api/challenges').status_code == 401


def test_signup_and_login(client):
    response = client.post('/auth/signup', json={'username': 'carol', 'password': 'pw'})
    assert response.status_code == 201
    assert response.get_json()['username'] == 'carol'

    assert client.post('/auth/signup', json={'username': 'carol', 'password': 'x'}).status_code == 409
    assert client.post('/auth/logout').status_code == 200
    assert client.post('/auth/login', json={'username': 'carol', 'password': 'nope'}).status_code == 401
    assert client.post('/auth/login', json={'username': 'carol', 'password': 'pw'}).status_code == 200


def test_challenge_list(logged_in, challenge):
    data = logged_in.get('/api/challenges').get_json()
    assert [c['title'] for c in data] == ['100 Days of Gratitude']


def test_start_twice_conflicts(logged_in, challenge):
    first = start(logged_in, challenge.id)
    assert first.status_code == 201
    assert first.get_json()['schedule_type'] == 'both'

    second = start(logged_in, challenge.id)
    assert second.status_code == 409
    assert 'already' in second.get_json()['error']


def test_start_with_bad_schedule(logged_in, challenge):
    assert start(logged_in, challenge.id, schedule_type='noon').status_code == 400


def test_start_unknown_challenge(logged_in):
    assert start(logged_in, 4242).status_code == 404


def test_today_save_and_progress(logged_in, challenge):
    enrollment_id = start(logged_in, challenge.id).get_json()['id']

    current = logged_in.get('/api/enrollments/current').get_json()
    assert current['enrollment']['id'] == enrollment_id

    today = logged_in.get(f'/api/enrollments/{enrollment_id}/today').get_json()
    assert today['unit_number'] == 1
    assert today['prompt']['challenge_number'] == 1
    assert '<strong>Psalm 1</strong>' in today['context_html']

    saved = logged_in.post(
        f'/api/enrollments/{enrollment_id}/entries/1',
        json={'entry_type': 'morning', 'content': 'Thankful for coffee'},
    ).get_json()
    assert saved['saved'] is True
    assert saved['entry']['completed'] is True

    blank = logged_in.post(
        f'/api/enrollments/{enrollment_id}/entries/2',
        json={'entry_type': 'morning', 'content': '   '},
    ).get_json()
    assert blank == {'saved': False, 'entry': None}

    progress = logged_in.get(f'/api/enrollments/{enrollment_id}/today').get_json()['progress']
    assert progress['total_completed'] == 1
    assert progress['current_streak'] == 1

    stats = logged_in.get(f'/api/enrollments/{enrollment_id}/stats').get_json()
    assert stats['overall']['total_days_completed'] == 1


def test_bad_entry_type(logged_in, challenge):
    enrollment_id = start(logged_in, challenge.id).get_json()['id']
    response = logged_in.post(
        f'/api/enrollments/{enrollment_id}/entries/1',
        json={'entry_type': 'lunch', 'content': 'x'},
    )
    assert response.status_code == 400


def test_offline_clear_and_review_notes(logged_in, challenge):
    enrollment_id = start(logged_in, challenge.id).get_json()['id']
    base = f'/api/enrollments/{enrollment_id}/entries'

    offline = logged_in.post(f'{base}/1/offline').get_json()
    assert offline['entry']['completed_offline'] is True

    logged_in.post(f'{base}/2', json={'entry_type': 'evening', 'content': 'quiet evening'})
    cleared = logged_in.delete(f'{base}/2/evening').get_json()
    assert cleared['entry']['completed'] is False

    notes = logged_in.post(f'{base}/3/review-notes', json={'review_notes': 'steady week'}).get_json()
    assert notes['entry']['review_notes'] == 'steady week'

    fetched = logged_in.get(f'{base}/3').get_json()
    assert fetched['entry']['completed'] is False

    review = logged_in.get(f'/api/enrollments/{enrollment_id}/review?week_end=7').get_json()
    assert review['week_end'] == 7
    assert review['entries'][2]['review_notes'] == 'steady week'

    assert db.session.get(UserChallenge, enrollment_id).total_completed == 1


def test_completed_enrollment_rejects_writes(logged_in, make_challenge):
    short = make_challenge(title='One Day', total_days=1)
    enrollment_id = start(logged_in, short.id).get_json()['id']
    base = f'/api/enrollments/{enrollment_id}/entries'

    assert logged_in.post(f'{base}/1/offline').status_code == 200
    response = logged_in.post(f'{base}/1', json={'entry_type': 'morning', 'content': 'again'})
    assert response.status_code == 409

    achievements = logged_in.get(f'/api/enrollments/{enrollment_id}/achievements').get_json()
    assert achievements[0]['id'] == 'graduate'


def test_other_users_enrollment_is_hidden(client, make_user, challenge, enroll):
    owner = make_user('owner')
    enrollment = enroll(challenge, user_id=owner.id)
    make_user('mallory', password='pw')
    client.post('/auth/login', json={'username': 'mallory', 'password': 'pw'})

    assert client.get(f'/api/enrollments/{enrollment.id}/today').status_code == 404
    assert client.get(f'/api/enrollments/{enrollment.id}/calendar').status_code == 404


def test_calendar_bad_month(logged_in, challenge):
    enrollment_id = start(logged_in, challenge.id).get_json()['id']
    response = logged_in.get(f'/api/enrollments/{enrollment_id}/calendar?month=soon')
    assert response.status_code == 400


def test_render_markdown_highlights():
    html = render_markdown('Give ==thanks== always')
    assert '<mark>thanks</mark>' in html
    assert render_markdown(None) == ''


def test_non_text_content_is_a_bad_request(logged_in, challenge):
    enrollment_id = start(logged_in, challenge.id).get_json()['id']
    response = logged_in.post(
        f'/api/enrollments/{enrollment_id}/entries/1',
        json={'entry_type': 'morning', 'content': 5},
    )
    assert response.status_code == 400


def test_review_defaults_to_the_calendar_week(logged_in, challenge, enroll):
    # Ten days in with nothing written: the snapshot still points at day 1
    enrollment = enroll(challenge, start_date=date.today() - timedelta(days=9))
    assert enrollment.current_challenge_number == 1

    review = logged_in.get(f'/api/enrollments/{enrollment.id}/review').get_json()
    assert review['week_end'] == 14
    assert [row['day_number'] for row in review['entries']] == [8, 9, 10, 11, 12, 13]
