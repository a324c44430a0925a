# File: caltodo/services/action_links.py

from typing import Callable

from caltodo.models import ActionLinks, TaskAction

# (event_id, action) -> opaque token issued by the action-token service
TokenFactory = Callable[[str, TaskAction], str]


class ActionLinkProvider:
    """Builds the complete/reschedule links embedded in task events."""

    def __init__(self, base_url: str, token_factory: TokenFactory):
        """
        Args:
            base_url: Public URL of the web app, without trailing slash
            token_factory: Issues a token for an event id and action
        """
        self.base_url = base_url.rstrip('/')
        self.token_factory = token_factory

    def link_for(self, event_id: str, action: TaskAction) -> str:
        token = self.token_factory(event_id, action)
        return f"{self.base_url}/action/{token}"

    def links_for(self, event_id: str) -> ActionLinks:
        return ActionLinks(
            complete=self.link_for(event_id, TaskAction.COMPLETE),
            reschedule=self.link_for(event_id, TaskAction.RESCHEDULE),
        )
