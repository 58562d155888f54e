from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ShareRecord(BaseModel):
    id: str
    owner: str
    path: str = ""
    sub_path: str = ""
    shared_with: List[str] = Field(default_factory=list)
    read_only: bool = False
    comment: str = ""


class ShareUpdate(BaseModel):
    shared_with: List[str]
    read_only: bool = False
    comment: str = ""
    sub_path: str = ""


class ShareCreate(ShareUpdate):
    name: Optional[str] = None
    owner: str


class UserRemovalPlan(BaseModel):
    """Share changes needed before an account can be removed."""

    username: str
    delete: List[str] = Field(default_factory=list)
    update: Dict[str, ShareRecord] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.delete and not self.update
