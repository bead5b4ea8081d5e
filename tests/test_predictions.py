from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from alphabet.clock import utcnow
from alphabet.errors import (
    BadRequestError,
    ConflictError,
    DeadlinePassedError,
    MatchNotOpenError,
    NotFoundError,
)
from alphabet.models import MatchStatus, Prediction, PredictedOutcome
from alphabet.services import predictions
from alphabet.services.predictions import list_user_predictions, upsert_prediction
from conftest import create_match


def all_predictions(session):
    return session.exec(select(Prediction)).all()


def test_upsert_creates_prediction(session, user, match):
    prediction = upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN, 2, 1)

    assert prediction.id is not None
    assert prediction.predicted_outcome == PredictedOutcome.HOME_WIN
    assert prediction.predicted_home_score == 2
    assert prediction.predicted_away_score == 1
    assert prediction.points_earned == 0
    assert prediction.is_evaluated is False


def test_upsert_replaces_existing_prediction(session, user, match):
    first = upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN, 2, 1)
    second = upsert_prediction(session, user.id, match.id, PredictedOutcome.DRAW)

    assert second.id == first.id
    assert second.predicted_outcome == PredictedOutcome.DRAW
    assert second.predicted_home_score is None
    assert second.predicted_away_score is None
    assert len(all_predictions(session)) == 1


def test_many_upserts_keep_one_row_per_user_and_match(session, user, admin, match):
    for outcome in PredictedOutcome:
        upsert_prediction(session, user.id, match.id, outcome)
        upsert_prediction(session, admin.id, match.id, outcome)

    rows = all_predictions(session)
    assert len(rows) == 2
    assert {p.user_id for p in rows} == {user.id, admin.id}


def test_upsert_overwrites_row_inserted_by_concurrent_request(session, user, match, monkeypatch):
    upsert_prediction(session, user.id, match.id, PredictedOutcome.DRAW)

    real_lookup = predictions._get_prediction
    calls = []

    def lookup_missing_first_time(db, user_id, match_id):
        calls.append(match_id)
        if len(calls) == 1:
            return None
        return real_lookup(db, user_id, match_id)

    monkeypatch.setattr(predictions, "_get_prediction", lookup_missing_first_time)

    prediction = upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN, 2, 0)

    assert len(calls) == 2
    rows = all_predictions(session)
    assert len(rows) == 1
    assert rows[0].id == prediction.id
    assert rows[0].predicted_outcome == PredictedOutcome.HOME_WIN
    assert (rows[0].predicted_home_score, rows[0].predicted_away_score) == (2, 0)


def test_database_rejects_duplicate_rows(session, user, match):
    session.add(Prediction(user_id=user.id, match_id=match.id, predicted_outcome=PredictedOutcome.DRAW))
    session.commit()

    session.add(Prediction(user_id=user.id, match_id=match.id, predicted_outcome=PredictedOutcome.HOME_WIN))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_upsert_unknown_match(session, user):
    with pytest.raises(NotFoundError):
        upsert_prediction(session, user.id, 999, PredictedOutcome.DRAW)


def test_upsert_after_deadline_keeps_prior_prediction(session, user, match):
    upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN, 1, 0)

    late = match.prediction_deadline + timedelta(seconds=1)
    with pytest.raises(DeadlinePassedError):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.AWAY_WIN, 0, 3, now=late)

    prediction = all_predictions(session)[0]
    assert prediction.predicted_outcome == PredictedOutcome.HOME_WIN
    assert prediction.predicted_home_score == 1
    assert prediction.predicted_away_score == 0


def test_upsert_exactly_at_deadline_is_rejected(session, user, match):
    with pytest.raises(DeadlinePassedError):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.DRAW, now=match.prediction_deadline)


def test_upsert_rejected_when_match_not_scheduled(session, user, match):
    upsert_prediction(session, user.id, match.id, PredictedOutcome.DRAW)
    match.apply_result(MatchStatus.POSTPONED)
    session.add(match)
    session.commit()

    with pytest.raises(MatchNotOpenError):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN)


def test_deadline_is_checked_before_status(session, user, round_, teams):
    now = utcnow()
    match = create_match(
        session, round_, teams[0], teams[1],
        match_date=now - timedelta(hours=1),
        prediction_deadline=now - timedelta(hours=2),
        status=MatchStatus.LIVE,
        home_score=0,
        away_score=0
    )

    with pytest.raises(DeadlinePassedError):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.DRAW)


def test_upsert_requires_both_scores(session, user, match):
    with pytest.raises(BadRequestError):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN, 2, None)


def test_upsert_rejects_score_contradicting_outcome(session, user, match):
    with pytest.raises(BadRequestError, match="does not match"):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.AWAY_WIN, 2, 1)

    assert all_predictions(session) == []


def test_evaluated_prediction_is_immutable(session, user, match):
    prediction = upsert_prediction(session, user.id, match.id, PredictedOutcome.HOME_WIN)
    prediction.is_evaluated = True
    session.add(prediction)
    session.commit()

    with pytest.raises(ConflictError):
        upsert_prediction(session, user.id, match.id, PredictedOutcome.DRAW)


def test_list_user_predictions_joins_match_data(session, user, round_, teams):
    home, away, third = teams
    later = create_match(
        session, round_, home, third,
        match_date=utcnow() + timedelta(days=5),
        prediction_deadline=utcnow() + timedelta(days=4)
    )
    sooner = create_match(session, round_, away, home)

    upsert_prediction(session, user.id, later.id, PredictedOutcome.HOME_WIN)
    upsert_prediction(session, user.id, sooner.id, PredictedOutcome.DRAW, 1, 1)

    rows = list_user_predictions(session, user.id)

    assert [row["match_id"] for row in rows] == [sooner.id, later.id]
    assert rows[0]["home_team_name"] == "Chelsea"
    assert rows[0]["away_team_short"] == "ARS"
    assert rows[0]["status"] == MatchStatus.SCHEDULED
    assert rows[0]["is_evaluated"] is False
    assert list_user_predictions(session, user.id, round_id=round_.id + 1) == []
