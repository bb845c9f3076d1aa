import os
import uuid
import logging
from typing import Optional, Tuple, List

from werkzeug.datastructures import FileStorage

from .models import db, Tournament, Team
from .storage import StorageManager, StorageError, TEAM_LOGOS_BUCKET, SCREENSHOTS_BUCKET
from .pubsub import EventPublisher
from .events import EventType, tournament_event, team_event

logger = logging.getLogger(__name__)


def is_image(file: FileStorage) -> bool:
    return bool(file.mimetype) and file.mimetype.startswith('image/')


def file_extension(filename: str, default: str = 'png') -> str:
    ext = os.path.splitext(filename or '')[1].lstrip('.').lower()
    return ext or default


class TournamentRegistry:
    """
    Manages tournaments and their teams:
    - Create/list/delete tournament records
    - Create/list/delete teams, including team logo upload
    """

    def __init__(self, storage: StorageManager = None, events: EventPublisher = None):
        self.storage = storage or StorageManager()
        self.events = events or EventPublisher()

    def create_tournament(
        self,
        name: str,
        description: str = None,
        total_matches: int = 12
    ) -> Tuple[Optional[Tournament], str]:
        """Create a new tournament."""
        name = (name or '').strip()
        if not name:
            return None, "Tournament name is required"

        if not isinstance(total_matches, int) or isinstance(total_matches, bool) or total_matches < 1:
            return None, "Total matches must be a positive integer"

        tournament = Tournament(
            tournament_id=f"t_{uuid.uuid4().hex[:12]}",
            name=name,
            description=(description or '').strip() or None,
            total_matches=total_matches
        )

        db.session.add(tournament)
        db.session.commit()

        self.events.publish_tournament_event(
            tournament_event(EventType.TOURNAMENT_CREATED, tournament.tournament_id, tournament.name)
        )
        return tournament, "Tournament created"

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """Get tournament by its public ID."""
        return Tournament.query.filter_by(tournament_id=tournament_id).first()

    def list_tournaments(self, limit: int = 50, offset: int = 0) -> List[Tournament]:
        """List tournaments, newest first."""
        return (Tournament.query
                .order_by(Tournament.created_at.desc(), Tournament.id.desc())
                .offset(offset)
                .limit(limit)
                .all())

    def delete_tournament(self, tournament_id: str) -> Tuple[bool, str]:
        """Delete a tournament with its teams and screenshot rows."""
        tournament = self.get_tournament(tournament_id)

        if not tournament:
            return False, "Tournament not found"

        name = tournament.name
        stored_files = self._stored_files(tournament.teams)
        db.session.delete(tournament)
        db.session.commit()
        self._remove_stored_files(stored_files)

        self.events.publish_tournament_event(
            tournament_event(EventType.TOURNAMENT_DELETED, tournament_id, name)
        )
        return True, "Tournament deleted"

    # ==================== Teams ====================

    def get_team(self, team_id: str) -> Optional[Team]:
        return Team.query.filter_by(team_id=team_id).first()

    def list_teams(self, tournament: Tournament, order: str = 'created') -> List[Team]:
        """List a tournament's teams by creation order or by name."""
        query = Team.query.filter_by(tournament_id=tournament.id)
        if order == 'name':
            query = query.order_by(Team.name, Team.id)
        else:
            query = query.order_by(Team.id)
        return query.all()

    def create_team(
        self,
        tournament_id: str,
        name: str,
        logo: FileStorage = None
    ) -> Tuple[Optional[Team], str]:
        """Create a team, uploading its logo first if one was given."""
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            return None, "Tournament not found"

        name = (name or '').strip()
        if not name:
            return None, "Please enter a team name"

        logo_url = None
        logo_path = None
        if logo is not None and logo.filename:
            if not is_image(logo):
                return None, "Team logo must be an image file"

            logo_path = f"{tournament.tournament_id}/{uuid.uuid4().hex[:16]}.{file_extension(logo.filename)}"
            try:
                logo_url = self.storage.upload(TEAM_LOGOS_BUCKET, logo_path, logo.stream, logo.mimetype)
            except StorageError as e:
                logger.warning(f"Logo upload failed for team '{name}': {e}")
                return None, "Failed to upload logo"

        team = Team(
            team_id=f"tm_{uuid.uuid4().hex[:12]}",
            tournament_id=tournament.id,
            name=name,
            logo_url=logo_url,
            logo_path=logo_path
        )
        db.session.add(team)
        db.session.commit()

        self.events.publish_tournament_event(
            team_event(EventType.TEAM_CREATED, tournament.tournament_id, team.team_id, team.name)
        )
        return team, "Team created successfully!"

    def delete_team(self, team_id: str) -> Tuple[bool, str]:
        """Delete a team and its screenshot rows."""
        team = self.get_team(team_id)
        if not team:
            return False, "Team not found"

        tournament_id = team.tournament.tournament_id
        name = team.name
        stored_files = self._stored_files([team])
        db.session.delete(team)
        db.session.commit()
        self._remove_stored_files(stored_files)

        self.events.publish_tournament_event(
            team_event(EventType.TEAM_DELETED, tournament_id, team_id, name)
        )
        return True, "Team deleted"

    # ==================== Stored files ====================

    @staticmethod
    def _stored_files(teams: List[Team]) -> List[Tuple[str, str]]:
        """(bucket, path) of every logo and screenshot owned by the teams."""
        files = []
        for team in teams:
            if team.logo_path:
                files.append((TEAM_LOGOS_BUCKET, team.logo_path))
            files.extend((SCREENSHOTS_BUCKET, s.storage_path) for s in team.screenshots if s.storage_path)
        return files

    def _remove_stored_files(self, files: List[Tuple[str, str]]):
        """Best-effort cleanup once the rows are gone; failures are only logged."""
        for bucket, path in files:
            try:
                self.storage.remove(bucket, path)
            except StorageError as e:
                logger.warning(f"Error deleting {bucket}/{path} from storage: {e}")
