# models/subscription.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class Subscription(BaseModel):
    userId: str
    courseId: str
    subscriptionType: str  # oneTime, monthly, yearly, lifetime, teamLicense
    status: str = "active"  # active, expired, cancelled, suspended
    startDate: datetime
    endDate: Optional[datetime] = None  # None for lifetime

    def is_current(self, now: datetime) -> bool:
        if self.status != "active":
            return False
        return self.endDate is None or self.endDate > now
