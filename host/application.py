"""Process-wide host state: open documents and interaction preferences."""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from host.document import Document
from utils.errors import StructuralPrecondition

logger = logging.getLogger(__name__)


class UserInteractionLevels(Enum):
    INTERACT_WITH_ALL = "interact_with_all"
    INTERACT_WITH_ALERTS = "interact_with_alerts"
    NEVER_INTERACT = "never_interact"


@dataclass
class ScriptPreferences:
    user_interaction_level: UserInteractionLevels = UserInteractionLevels.INTERACT_WITH_ALL


class Application:
    """Holds the open documents and the interaction-suppression setting."""

    def __init__(self) -> None:
        self.documents: list[Document] = []
        self.script_preferences = ScriptPreferences()

    @property
    def active_document(self) -> Document:
        if not self.documents:
            raise StructuralPrecondition("No target document is open; open a template first.")
        return self.documents[-1]

    def open(self, document: Document) -> Document:
        self.documents.append(document)
        return document

    def close(self, document: Document) -> None:
        self.documents = [d for d in self.documents if d is not document]

    @property
    def interaction_allowed(self) -> bool:
        return (
            self.script_preferences.user_interaction_level
            is not UserInteractionLevels.NEVER_INTERACT
        )

    def alert(self, message: str) -> None:
        """Show *message* to the user unless interaction is suppressed."""
        logger.info("%s", message)
        if self.interaction_allowed:
            print(message, file=sys.stderr, flush=True)


@contextmanager
def suppressed_interaction(
    application: Application,
    level: UserInteractionLevels = UserInteractionLevels.NEVER_INTERACT,
) -> Iterator[Application]:
    """Set the interaction level for the block and restore it on every exit."""
    original = application.script_preferences.user_interaction_level
    application.script_preferences.user_interaction_level = level
    try:
        yield application
    finally:
        application.script_preferences.user_interaction_level = original


# Shared instance used by the command-line entry point.
app = Application()
