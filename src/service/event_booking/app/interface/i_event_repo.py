from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.event_booking.domain.entity.event_entity import Event


class IEventRepo(ABC):
    """Repository interface for events (created once, never updated or deleted)"""

    @abstractmethod
    async def create(self, *, event: Event) -> Event:
        pass

    @abstractmethod
    async def get_by_id(self, *, event_id: int) -> Optional[Event]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Event]:
        """All events, newest first"""
        pass
