import time
import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from .models import db, Tournament, Team, MatchScreenshot, MAX_COLUMN_INT
from .scoring import ScoringCalculator
from .storage import StorageManager, StorageError, SCREENSHOTS_BUCKET
from .analyzer import ScreenshotAnalyzer, AnalysisError
from .pubsub import EventPublisher
from .events import EventType, screenshot_event
from .tournament_registry import is_image, file_extension

logger = logging.getLogger(__name__)

VALID_DAYS = (1, 2, 3)
UNKNOWN_TEAM = "Unknown Team"


def _plural(count: int) -> str:
    return '' if count == 1 else 's'


@dataclass
class UploadReport:
    uploaded: List[MatchScreenshot] = field(default_factory=list)
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.uploaded)

    @property
    def messages(self) -> List[str]:
        messages = []
        if self.success_count:
            messages.append(f"Successfully uploaded {self.success_count} screenshot{_plural(self.success_count)}!")
        if self.failed:
            messages.append(f"Failed to process {self.failed} screenshot{_plural(self.failed)}")
        return messages

    def to_dict(self) -> Dict:
        return {
            'uploaded': self.success_count,
            'failed': self.failed,
            'messages': self.messages,
            'errors': self.errors,
            'screenshots': [s.to_dict() for s in self.uploaded],
        }


class ScreenshotService:
    """
    Match screenshot lifecycle:
    - Player upload: store image, analyze it, score it, persist the row
    - Admin verification: correct placement/kills, delete screenshots
    - Gallery and per-team upload counts
    """

    def __init__(
        self,
        storage: StorageManager,
        analyzer: ScreenshotAnalyzer,
        events: EventPublisher = None,
        calculator: ScoringCalculator = None,
        max_per_team: int = 12,
        max_per_upload: int = 4
    ):
        self.storage = storage
        self.analyzer = analyzer
        self.events = events or EventPublisher()
        self.calculator = calculator or ScoringCalculator()
        self.max_per_team = max_per_team
        self.max_per_upload = max_per_upload

    # ==================== Upload pipeline ====================

    def count_for_team(self, team: Team) -> int:
        return MatchScreenshot.query.filter_by(team_id=team.id).count()

    def validate_upload(self, team: Optional[Team], day, files: List[FileStorage]) -> Optional[str]:
        """Return a user-facing rejection message, or None if the batch may proceed."""
        if team is None:
            return "Please select a team first"

        if day not in VALID_DAYS:
            return "Day must be 1, 2 or 3"

        if not files:
            return "Please choose at least one screenshot"

        # Read-then-compare: concurrent uploads can overshoot the cap
        current = self.count_for_team(team)
        if current >= self.max_per_team:
            return f"This team has already uploaded the maximum {self.max_per_team} screenshots"

        if current + len(files) > self.max_per_team:
            remaining = self.max_per_team - current
            return f"This team can only upload {remaining} more screenshot{_plural(remaining)}"

        if len(files) > self.max_per_upload:
            return f"You can only upload up to {self.max_per_upload} screenshots at once"

        if not all(is_image(f) for f in files):
            return "Please upload only image files"

        return None

    def upload_screenshots(
        self,
        team_id: str,
        player_id: str,
        day: int,
        files: List[FileStorage]
    ) -> Tuple[Optional[UploadReport], str]:
        """
        Upload, analyze and persist a batch of screenshots for one team.

        Files are processed one at a time. A failure in one file is counted and
        the batch continues; an image already stored when analysis or the insert
        fails is left in storage.

        Returns:
            (report, message); report is None when the batch was rejected up front
        """
        team = Team.query.filter_by(team_id=team_id).first() if team_id else None
        if team_id and team is None:
            return None, "Team not found"
        rejection = self.validate_upload(team, day, files)
        if rejection:
            return None, rejection

        report = UploadReport()
        batch_stamp = int(time.time() * 1000)

        for i, file in enumerate(files):
            shot, error = self._process_file(team, player_id, day, file, f"{player_id}/{batch_stamp}_{i}")
            if shot is None:
                report.failed += 1
                report.errors.append(f"{file.filename or f'file {i + 1}'}: {error}")
            else:
                report.uploaded.append(shot)

        logger.info(
            f"Upload for team {team.team_id} day {day}: "
            f"{report.success_count} stored, {report.failed} failed"
        )
        return report, ' '.join(report.messages)

    def _process_file(
        self,
        team: Team,
        player_id: str,
        day: int,
        file: FileStorage,
        path_stem: str
    ) -> Tuple[Optional[MatchScreenshot], str]:
        path = f"{path_stem}.{file_extension(file.filename)}"

        try:
            public_url = self.storage.upload(SCREENSHOTS_BUCKET, path, file.stream, file.mimetype)
        except StorageError as e:
            logger.warning(f"Screenshot upload failed: {e}")
            return None, "upload failed"

        try:
            result = self.analyzer.analyze(public_url)
        except AnalysisError as e:
            logger.warning(f"Analysis failed, stored file {path} left without a record: {e}")
            return None, "analysis failed"

        if not result.is_complete:
            logger.warning(f"Analysis incomplete for {path} (placement={result.placement}, kills={result.kills})")
            return None, "could not read placement and kills"

        points = self.calculator.calculate_points(result.placement, result.kills)
        if max(result.placement, result.kills, points) > MAX_COLUMN_INT:
            logger.warning(f"Analysis out of range for {path} (placement={result.placement}, kills={result.kills})")
            return None, "could not read placement and kills"

        shot = MatchScreenshot(
            screenshot_id=f"ss_{uuid.uuid4().hex[:12]}",
            team_id=team.id,
            player_id=player_id,
            day=day,
            screenshot_url=public_url,
            storage_path=path,
            placement=result.placement,
            kills=result.kills,
            points=points,
            analyzed_at=datetime.utcnow()
        )

        try:
            db.session.add(shot)
            db.session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            db.session.rollback()
            logger.warning(f"Database error saving screenshot {path}: {e}")
            return None, "could not be saved"

        self._publish(EventType.SCREENSHOT_CREATED, shot)
        return shot, ""

    # ==================== Admin verification ====================

    def get_screenshot(self, screenshot_id: str) -> Optional[MatchScreenshot]:
        return MatchScreenshot.query.filter_by(screenshot_id=screenshot_id).first()

    def update_screenshot(self, screenshot_id: str, placement, kills) -> Tuple[Optional[MatchScreenshot], str]:
        """Correct placement and kills and recompute points."""
        shot = self.get_screenshot(screenshot_id)
        if not shot:
            return None, "Screenshot not found"

        if isinstance(placement, bool) or not isinstance(placement, int) or placement < 1:
            return None, "Placement must be an integer of at least 1"

        if isinstance(kills, bool) or not isinstance(kills, int) or kills < 0:
            return None, "Kills must be a non-negative integer"

        points = self.calculator.calculate_points(placement, kills)
        if max(placement, kills, points) > MAX_COLUMN_INT:
            return None, "Placement and kills are out of range"

        shot.placement = placement
        shot.kills = kills
        shot.points = points
        try:
            db.session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            db.session.rollback()
            logger.warning(f"Database error updating screenshot {screenshot_id}: {e}")
            return None, "Failed to update screenshot"

        self._publish(EventType.SCREENSHOT_UPDATED, shot)
        return shot, "Screenshot updated successfully"

    def delete_screenshot(self, screenshot_id: str) -> Tuple[bool, str]:
        """Delete the row, then the stored image. A storage failure does not undo the row deletion."""
        shot = self.get_screenshot(screenshot_id)
        if not shot:
            return False, "Screenshot not found"

        payload = shot.to_dict()
        storage_path = shot.storage_path
        tournament_id = shot.team.tournament.tournament_id
        try:
            db.session.delete(shot)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Database error deleting screenshot {screenshot_id}: {e}")
            return False, "Failed to delete screenshot"

        if storage_path:
            try:
                if not self.storage.remove(SCREENSHOTS_BUCKET, storage_path):
                    logger.warning(f"Stored file {storage_path} was already missing")
            except StorageError as e:
                logger.warning(f"Error deleting from storage: {e}")

        self.events.publish_tournament_event(
            screenshot_event(EventType.SCREENSHOT_DELETED, tournament_id, payload)
        )
        return True, "Screenshot deleted"

    def list_for_verification(self, tournament: Tournament) -> List[MatchScreenshot]:
        """All screenshots of the tournament's teams, newest first."""
        return (MatchScreenshot.query
                .join(Team)
                .filter(Team.tournament_id == tournament.id)
                .order_by(MatchScreenshot.created_at.desc(), MatchScreenshot.id.desc())
                .all())

    # ==================== Gallery ====================

    def list_for_gallery(self, tournament: Tournament, team_id: str = 'all', day: int = 0) -> List[MatchScreenshot]:
        """Screenshots filtered by team ('all' for every team) and day (0 for every day)."""
        query = (MatchScreenshot.query
                 .join(Team)
                 .filter(Team.tournament_id == tournament.id))

        if team_id and team_id != 'all':
            query = query.filter(Team.team_id == team_id)

        if day:
            query = query.filter(MatchScreenshot.day == day)

        return query.order_by(
            MatchScreenshot.day.asc(),
            MatchScreenshot.created_at.desc(),
            MatchScreenshot.id.desc()
        ).all()

    @staticmethod
    def group_by_team_and_day(screenshots: List[MatchScreenshot]) -> Dict[str, Dict[int, List[Dict]]]:
        grouped: Dict[str, Dict[int, List[Dict]]] = {}
        for shot in screenshots:
            team_name = shot.team.name if shot.team else UNKNOWN_TEAM
            grouped.setdefault(team_name, {}).setdefault(shot.day, []).append(shot.to_dict())
        return grouped

    def upload_counts(self, tournament: Tournament) -> Dict[str, Dict]:
        """Screenshots per team and how many more each team may upload."""
        rows = (db.session.query(Team.team_id, db.func.count(MatchScreenshot.id))
                .outerjoin(MatchScreenshot, MatchScreenshot.team_id == Team.id)
                .filter(Team.tournament_id == tournament.id)
                .group_by(Team.team_id)
                .all())

        return {
            team_id: {
                'uploaded': count,
                'remaining': max(self.max_per_team - count, 0),
            }
            for team_id, count in rows
        }

    def _publish(self, event_type: EventType, shot: MatchScreenshot):
        self.events.publish_tournament_event(
            screenshot_event(event_type, shot.team.tournament.tournament_id, shot.to_dict())
        )
