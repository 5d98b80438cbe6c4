# Importing the package registers every table on Base.metadata.
from league.models.season import Season
from league.models.week import Week
from league.models.participant import Participant
from league.models.participant_token import ParticipantToken
from league.models.activity import StoredActivity
from league.models.segment_effort import StoredEffort
from league.models.result import Result
from league.models.webhook_event import WebhookEvent

__all__ = [
    "Season",
    "Week",
    "Participant",
    "ParticipantToken",
    "StoredActivity",
    "StoredEffort",
    "Result",
    "WebhookEvent",
]
