from pydantic import Field

from .base import AliasedOut


class CallDetailsOut(AliasedOut):
    agora_app_certificate: str = Field(alias="agoraAppCertificate")
    agora_app_id: str = Field(alias="agoraAppId")
    token: str
    uid: int
