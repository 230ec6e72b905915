"""Content moderation gate, correction review and flags."""

from realtea_engine.moderation.content_moderator import ContentModerator
from realtea_engine.moderation.corrections import CorrectionService
from realtea_engine.moderation.flags import FlagService

__all__ = ["ContentModerator", "CorrectionService", "FlagService"]
