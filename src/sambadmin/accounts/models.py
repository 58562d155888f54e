from pydantic import BaseModel


class Account(BaseModel):
    username: str
    home_dir: str


class OrphanedDirectory(BaseModel):
    """A directory under the home root with no matching account."""

    name: str
    path: str
    size: int = 0
