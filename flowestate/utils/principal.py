"""
The caller behind a request: a signed-in agent, or an upload token acting for one.
"""

from typing import Optional
from flowestate.models.agent import Agent
from flowestate.models.upload_token import UploadToken


class Principal:
    """Agent on whose behalf a request runs, and the upload token used, if any."""

    def __init__(self, agent: Agent, upload_token: Optional[UploadToken] = None):
        self.agent = agent
        self.upload_token = upload_token

    @property
    def agent_id(self):
        return self.agent.id

    @property
    def via_upload_token(self) -> bool:
        return self.upload_token is not None

    def __repr__(self) -> str:
        source = "upload_token" if self.via_upload_token else "session"
        return f"<Principal(agent_id={self.agent.id}, via={source})>"
