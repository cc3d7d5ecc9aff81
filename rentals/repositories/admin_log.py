"""
Admin action log repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from rentals.repositories.base import BaseRepository
from rentals.models.admin_log import AdminActionLog
from typing import Optional, List, Tuple


class AdminLogRepository(BaseRepository[AdminActionLog]):
    def __init__(self, db: AsyncSession):
        super().__init__(AdminActionLog, db)
    
    async def list_logs(
        self,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AdminActionLog], int]:
        query = select(AdminActionLog)
        if action:
            query = query.where(AdminActionLog.action == action)
        if target_type:
            query = query.where(AdminActionLog.target_type == target_type)
        return await self.paginate(query.order_by(AdminActionLog.created_at.desc()), skip, limit)
