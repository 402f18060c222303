# curator/settings/types.py
from pydantic import BaseModel, Field
from typing import Optional
from dataclasses import dataclass

from ..log_level import LogLevel

@dataclass
class MuseumInfo:
    """Basic information about a museum API"""
    name: str
    base_url: str
    code: str
    user_agent: Optional[str] = None
    contact_email: Optional[str] = None
    requires_api_key: bool = False

class MuseumConfig(BaseModel):
    '''Configurations for specific museums'''
    api_base_url: str = Field(...)
    user_agent: str = Field(...)
    contact_email: Optional[str] = Field(default=None)
    api_key: Optional[str] = Field(default=None)
    code: str = Field(...)
    name: Optional[str] = Field(default=None)

    def to_museum_info(self) -> MuseumInfo:
        """Convert config to MuseumInfo instance"""
        return MuseumInfo(
            name=self.name or f"{self.code.upper()} Museum",
            base_url=self.api_base_url,
            code=self.code,
            user_agent=self.user_agent,
            contact_email=self.contact_email,
            requires_api_key=self.api_key is not None
        )

    model_config = {"validate_assignment": True}

__all__ = ['LogLevel', 'MuseumInfo', 'MuseumConfig']
