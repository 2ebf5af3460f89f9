from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import ConflictError, NotFoundError, TransactionFailure, ValidationError
from app.models.challenge import Challenge
from app.models.player_challenge import MatchOutcome, PlayerChallenge
from app.services.challenge_service import challenge_service_obj
from app.services.result_service import result_service_obj

MATCH_DATE = date(2024, 3, 9)


class TestChallengeLifecycle:

    def test_create_returns_new_id(self, db_session, make_club, reload):
        make_club("Riverside")

        first = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")
        second = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "19:30")

        assert second != first
        challenge = reload(Challenge, second)
        assert challenge.time == "19:30"
        assert challenge.accepted is False
        assert challenge.score is None

    def test_create_with_unknown_club(self, db_session):
        with pytest.raises(NotFoundError):
            challenge_service_obj.create_challenge(db_session, "Nowhere", MATCH_DATE, "18:30")
        assert db_session.query(Challenge).count() == 0

    def test_cancelled_id_is_not_reused(self, db_session, make_club):
        make_club("Riverside")
        first = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")
        challenge_service_obj.cancel_challenge(db_session, first)

        second = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")

        assert second > first

    def test_propose_creates_both_rows(self, db_session, make_club, make_player):
        club = make_club("Riverside")
        initiator, opponent = make_player(club), make_player(club)
        challenge_id = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")

        challenge_service_obj.create_player_challenge(db_session, challenge_id, initiator.id, opponent.id)

        rows = db_session.query(PlayerChallenge).filter(
            PlayerChallenge.challenge_id == challenge_id
        ).all()
        assert len(rows) == 2
        assert {row.player_id: row.did_initiate for row in rows} == {
            initiator.id: True,
            opponent.id: False,
        }
        assert all(row.outcome is MatchOutcome.UNRESOLVED for row in rows)

    def test_both_players_see_active_challenge(self, db_session, make_club, make_player):
        club = make_club("Riverside")
        initiator = make_player(club, first_name="Ana")
        opponent = make_player(club, first_name="Ben", elo=1350)
        challenge_id = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")
        challenge_service_obj.create_player_challenge(db_session, challenge_id, initiator.id, opponent.id)

        mine = challenge_service_obj.get_challenges(db_session, initiator.id)
        theirs = challenge_service_obj.get_challenges(db_session, opponent.id)

        assert [c.challengeid for c in mine] == [challenge_id]
        assert [c.challengeid for c in theirs] == [challenge_id]
        assert mine[0].didinitiate is True
        assert mine[0].opponentid == opponent.id
        assert mine[0].fname == "Ben"
        assert mine[0].elo == 1350
        assert mine[0].clubname == "Riverside"
        assert mine[0].date == MATCH_DATE
        assert mine[0].accepted is False
        assert theirs[0].didinitiate is False
        assert theirs[0].fname == "Ana"

    def test_cannot_challenge_yourself(self, db_session, make_club, make_player):
        club = make_club("Riverside")
        player = make_player(club)
        challenge_id = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")

        with pytest.raises(ValidationError):
            challenge_service_obj.create_player_challenge(db_session, challenge_id, player.id, player.id)

    def test_propose_with_unknown_opponent_leaves_no_rows(self, db_session, make_club, make_player):
        club = make_club("Riverside")
        initiator = make_player(club)
        challenge_id = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")

        with pytest.raises(NotFoundError):
            challenge_service_obj.create_player_challenge(db_session, challenge_id, initiator.id, 9999)

        assert db_session.query(PlayerChallenge).filter(
            PlayerChallenge.challenge_id == challenge_id
        ).count() == 0

    def test_propose_twice_conflicts(self, db_session, make_club, make_player):
        club = make_club("Riverside")
        a, b, c = make_player(club), make_player(club), make_player(club)
        challenge_id = challenge_service_obj.create_challenge(db_session, "Riverside", MATCH_DATE, "18:30")
        challenge_service_obj.create_player_challenge(db_session, challenge_id, a.id, b.id)

        with pytest.raises(ConflictError):
            challenge_service_obj.create_player_challenge(db_session, challenge_id, a.id, c.id)

        assert db_session.query(PlayerChallenge).filter(
            PlayerChallenge.challenge_id == challenge_id
        ).count() == 2

    def test_propose_for_unknown_challenge(self, db_session, make_player):
        a, b = make_player(), make_player()
        with pytest.raises(NotFoundError):
            challenge_service_obj.create_player_challenge(db_session, 9999, a.id, b.id)

    def test_accept_twice_is_a_no_op(self, db_session, make_club, make_player, make_challenge, reload):
        club = make_club()
        challenge_id = make_challenge(make_player(club), make_player(club), club, accepted=False)

        challenge_service_obj.accept_challenge(db_session, challenge_id)
        challenge_service_obj.accept_challenge(db_session, challenge_id)

        assert reload(Challenge, challenge_id).accepted is True

    def test_accept_unknown_challenge(self, db_session):
        with pytest.raises(NotFoundError):
            challenge_service_obj.accept_challenge(db_session, 9999)

    def test_accept_store_failure_rolls_back(self, db_session, make_club, make_player, make_challenge,
                                             reload, monkeypatch):
        club = make_club()
        challenge_id = make_challenge(make_player(club), make_player(club), club, accepted=False)

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(TransactionFailure):
            challenge_service_obj.accept_challenge(db_session, challenge_id)

        assert reload(Challenge, challenge_id).accepted is False

    def test_cancel_removes_challenge_and_rows(self, db_session, make_club, make_player, make_challenge):
        club = make_club()
        a, b = make_player(club), make_player(club)
        a_id, b_id = a.id, b.id
        challenge_id = make_challenge(a, b, club, accepted=False)

        challenge_service_obj.cancel_challenge(db_session, challenge_id)

        assert db_session.query(Challenge).filter(Challenge.id == challenge_id).count() == 0
        assert db_session.query(PlayerChallenge).filter(
            PlayerChallenge.challenge_id == challenge_id
        ).count() == 0
        for player_id in (a_id, b_id):
            assert challenge_service_obj.get_challenges(db_session, player_id) == []
            assert challenge_service_obj.get_match_history(db_session, player_id) == []

    def test_cancel_unknown_challenge(self, db_session):
        with pytest.raises(NotFoundError):
            challenge_service_obj.cancel_challenge(db_session, 9999)

    def test_scored_challenge_cannot_be_cancelled(self, db_session, make_club, make_player, make_challenge):
        club = make_club()
        a, b = make_player(club), make_player(club)
        challenge_id = make_challenge(a, b, club)
        result_service_obj.post_result(db_session, challenge_id, a.id, b.id, "6-1 6-1", 1216, 1184, 1216, False)

        with pytest.raises(ConflictError):
            challenge_service_obj.cancel_challenge(db_session, challenge_id)
        assert db_session.query(Challenge).filter(Challenge.id == challenge_id).count() == 1


class TestChallengeListings:

    def test_scored_challenge_moves_to_history(self, db_session, make_club, make_player, make_challenge):
        club = make_club()
        winner = make_player(club, last_name="Winner")
        loser = make_player(club, last_name="Loser")
        winner_id, loser_id = winner.id, loser.id
        challenge_id = make_challenge(winner, loser, club)

        result_service_obj.post_result(
            db_session, challenge_id, winner_id, loser_id, "6-3 7-6", 1216, 1184, 1216, False
        )

        assert challenge_service_obj.get_challenges(db_session, winner_id) == []
        winner_history = challenge_service_obj.get_match_history(db_session, winner_id)
        loser_history = challenge_service_obj.get_match_history(db_session, loser_id)
        assert [(h.challengeid, h.didwin, h.score) for h in winner_history] == [(challenge_id, 1, "6-3 7-6")]
        assert [(h.challengeid, h.didwin, h.lname) for h in loser_history] == [(challenge_id, 0, "Winner")]

    def test_history_only_lists_resolved(self, db_session, make_club, make_player, make_challenge):
        club = make_club()
        a, b = make_player(club), make_player(club)
        a_id = a.id
        make_challenge(a, b, club)

        assert challenge_service_obj.get_match_history(db_session, a_id) == []
        assert len(challenge_service_obj.get_challenges(db_session, a_id)) == 1

    def test_listing_for_unknown_player(self, db_session):
        with pytest.raises(NotFoundError):
            challenge_service_obj.get_challenges(db_session, 9999)
        with pytest.raises(NotFoundError):
            challenge_service_obj.get_match_history(db_session, 9999)
