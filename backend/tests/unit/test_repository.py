"""
Unit tests for the repository backings.

The same behaviour is checked against the SQLAlchemy and the JSON file
repositories.
"""

import pytest
from datetime import datetime

from backend.src.schemas.recurrence import SingleRecurrence, WeeklyRecurrence
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    RepositoryError,
    SlugConflictError,
    ValidationError,
)


def _event_fields(**overrides):
    fields = {
        'slug': 'spring-meet',
        'title': 'Spring Meet',
        'description': 'Monthly gathering',
        'city': 'Campinas',
        'state': 'SP',
        'location': 'Parque Taquaral',
        'contact_name': 'Ana',
        'contact_phone': '19 99999-0000',
        'start_at': datetime(2026, 1, 31, 9, 0),
        'status': 'pending',
        'created_by': 'user-1',
    }
    fields.update(overrides)
    return fields


def _past_event_fields(**overrides):
    fields = {
        'slug': 'spring-meet',
        'title': 'Spring Meet',
        'city': 'Campinas',
        'state': 'SP',
        'date': datetime(2026, 1, 31, 9, 0),
        'images': ['https://cdn.example.com/a.jpg'],
    }
    fields.update(overrides)
    return fields


@pytest.fixture(params=['sql', 'json'])
def repos(request):
    """(event repository, past-event repository) for each backing."""
    if request.param == 'sql':
        return (
            request.getfixturevalue('event_repo'),
            request.getfixturevalue('past_event_repo'),
        )
    return (
        request.getfixturevalue('json_event_repo'),
        request.getfixturevalue('json_past_event_repo'),
    )


class TestEventRepository:
    """Tests for event CRUD on both backings."""

    def test_create_and_find(self, repos):
        """Test a created event is found by id and slug."""
        events, _ = repos
        created = events.create(_event_fields(
            recurrence=WeeklyRecurrence(day_of_week=6, occurrence_count=4),
            images=['https://cdn.example.com/a.jpg'],
        ))

        assert created.id.startswith('evt_')
        assert created.created_at is not None
        assert events.find_by_id(created.id) == created
        assert events.find_by_slug('spring-meet').id == created.id
        assert created.recurrence == WeeklyRecurrence(day_of_week=6, occurrence_count=4)
        assert created.images == ['https://cdn.example.com/a.jpg']

    def test_default_recurrence_is_single(self, repos):
        """Test an event stored without recurrence reads back as single."""
        events, _ = repos
        created = events.create(_event_fields())
        assert events.find_by_id(created.id).recurrence == SingleRecurrence()

    def test_missing_lookups(self, repos):
        """Test lookups of unknown ids and slugs return None."""
        events, _ = repos
        assert events.find_by_id('evt_01hgw2bbg00000000000000000') is None
        assert events.find_by_id('not-a-guid') is None
        assert events.find_by_slug('nothing-here') is None

    def test_update(self, repos):
        """Test partial updates leave other fields untouched."""
        events, _ = repos
        created = events.create(_event_fields())

        updated = events.update(created.id, {'status': 'approved', 'city': 'Valinhos'})

        assert updated.status == 'approved'
        assert updated.city == 'Valinhos'
        assert updated.title == 'Spring Meet'
        assert updated.updated_at >= created.updated_at

    def test_update_missing(self, repos):
        """Test updating an unknown record returns None."""
        events, _ = repos
        assert events.update('evt_01hgw2bbg00000000000000000', {'city': 'X'}) is None

    def test_delete(self, repos):
        """Test delete reports whether a record was removed."""
        events, _ = repos
        created = events.create(_event_fields())

        assert events.delete(created.id) is True
        assert events.find_by_id(created.id) is None
        assert events.delete(created.id) is False

    def test_unknown_field_rejected(self, repos):
        """Test writes with unknown keys fail."""
        events, _ = repos
        with pytest.raises(ValidationError):
            events.create(_event_fields(colour='red'))

    def test_duplicate_slug(self, repos):
        """Test the store refuses a second record with the same slug."""
        events, _ = repos
        events.create(_event_fields())

        with pytest.raises(SlugConflictError) as exc_info:
            events.create(_event_fields(title='Another'))

        assert exc_info.value.slug == 'spring-meet'
        assert len(events.get_all()) == 1

    def test_slug_exists_excludes_self(self, repos):
        """Test slug_exists ignores the record being edited."""
        events, _ = repos
        created = events.create(_event_fields())

        assert events.slug_exists('spring-meet') is True
        assert events.slug_exists('spring-meet', exclude_id=created.id) is False

    def test_find_by(self, repos):
        """Test attribute filtering."""
        events, _ = repos
        events.create(_event_fields())
        approved = events.create(_event_fields(slug='autumn-meet', status='approved'))

        assert [e.id for e in events.find_by(status='approved')] == [approved.id]


class TestPastEventRepository:
    """Tests for gallery CRUD on both backings."""

    def test_link_to_event(self, repos):
        """Test event_id round-trips as the event GUID."""
        events, past_events = repos
        event = events.create(_event_fields())

        created = past_events.create(_past_event_fields(event_id=event.id))

        assert created.id.startswith('pev_')
        assert created.event_id == event.id
        assert [p.id for p in past_events.find_by(event_id=event.id)] == [created.id]

    def test_one_past_event_per_event(self, repos):
        """Test a second gallery record for the same event is refused."""
        events, past_events = repos
        event = events.create(_event_fields())
        past_events.create(_past_event_fields(event_id=event.id))

        with pytest.raises(ConflictError):
            past_events.create(_past_event_fields(slug='spring-meet-2', event_id=event.id))

    def test_detach(self, repos):
        """Test event_id can be cleared."""
        events, past_events = repos
        event = events.create(_event_fields())
        created = past_events.create(_past_event_fields(event_id=event.id))

        updated = past_events.update(created.id, {'event_id': None})

        assert updated.event_id is None
        assert past_events.find_by(event_id=event.id) == []


class TestSqlSpecifics:
    """Tests specific to the SQLAlchemy backing."""

    def test_unknown_event_link(self, past_event_repo):
        """Test linking to a missing event is not found."""
        with pytest.raises(NotFoundError):
            past_event_repo.create(_past_event_fields(event_id='evt_01hgw2bbg00000000000000000'))

    def test_deleting_event_nulls_link(self, event_repo, past_event_repo):
        """Test the foreign key detaches gallery records on delete."""
        event = event_repo.create(_event_fields())
        created = past_event_repo.create(_past_event_fields(event_id=event.id))

        event_repo.delete(event.id)

        assert past_event_repo.find_by_id(created.id).event_id is None

    def test_not_null_violation(self, event_repo):
        """Test a missing required column is a conflict, not a slug race."""
        with pytest.raises(ConflictError) as exc_info:
            event_repo.create(_event_fields(start_at=None))

        assert not isinstance(exc_info.value, SlugConflictError)
        assert 'database constraint' in str(exc_info.value)
        assert event_repo.get_all() == []


class TestJsonSpecifics:
    """Tests specific to the JSON file backing."""

    def test_persists_across_instances(self, tmp_path):
        """Test records are read back by a fresh repository."""
        from backend.src.db.repository import JsonEventRepository

        path = tmp_path / 'events.json'
        created = JsonEventRepository(path).create(_event_fields(end_at=datetime(2026, 1, 31, 18, 0)))

        reloaded = JsonEventRepository(path).find_by_id(created.id)

        assert reloaded == created
        assert reloaded.end_at == datetime(2026, 1, 31, 18, 0)

    def test_missing_file_is_empty(self, json_event_repo):
        """Test a repository without a file has no records."""
        assert json_event_repo.get_all() == []

    def test_corrupt_file(self, json_event_repo):
        """Test an unreadable document raises RepositoryError."""
        json_event_repo.path.write_text('{not json', encoding='utf-8')

        with pytest.raises(RepositoryError):
            json_event_repo.get_all()
