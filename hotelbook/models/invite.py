from typing import Optional

from .base import WireModel

class InviteToken(WireModel):
    token: str
    issued_by: str
    issued_at: int = 0
    max_uses: int = 1
    usage_count: int = 0
    bound_principal: Optional[str] = None
    is_active: bool = True
