# src/schemas/connect_schema.py
from typing import Optional

from src.schemas.base import CamelModel, UTCDateTime

class ConnectUrlResponse(CamelModel):
    success: bool = True
    url: str
    state: str

class ConnectionStatus(CamelModel):
    connected: bool
    expiry: Optional[UTCDateTime] = None
    is_expired: bool

class DisconnectResponse(CamelModel):
    success: bool = True
    message: str = "LinkedIn account disconnected successfully"

class LinkedInUserInfo(CamelModel):
    sub: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

class ConnectionTestResponse(CamelModel):
    success: bool = True
    message: str = "LinkedIn connection is working"
    user_info: LinkedInUserInfo
